"""Application settings and file locations."""

from __future__ import annotations

from dataclasses import dataclass
import json
import os
from pathlib import Path
from typing import Mapping, Optional

from .errors import CorruptStateError, StartupError, ValidationError


FEATURE_FLAG_ENV = "MO_FEATURE_PROJECTS"
_TRUTHY = {"1", "true", "yes", "on", "enabled"}
_DEFAULT_LARGE_FILE_BYTES = 100 * 1024 * 1024
_DEFAULT_TRASH_RETENTION_DAYS = 7


@dataclass(frozen=True)
class Settings:
    home: Path
    projects_enabled: bool = False
    large_file_bytes: int = _DEFAULT_LARGE_FILE_BYTES
    trash_retention_days: int = _DEFAULT_TRASH_RETENTION_DAYS

    @property
    def primary_dir(self) -> Path:
        return self.home / ".orbit"

    @property
    def legacy_dir(self) -> Path:
        return self.home / ".mole"

    @property
    def legacy_config_dir(self) -> Path:
        return self.home / ".config" / "mole"

    @property
    def trash_dir(self) -> Path:
        return self.legacy_dir / "trash"

    @property
    def focus_path(self) -> Path:
        return self.primary_dir / "focus.json"

    @property
    def legacy_focus_path(self) -> Path:
        return self.legacy_config_dir / "focus.json"

    @property
    def session_path(self) -> Path:
        return self.primary_dir / "session.json"

    @property
    def legacy_session_path(self) -> Path:
        return self.legacy_dir / "session.json"

    @property
    def external_index_path(self) -> Path:
        return self.primary_dir / "index.json"

    @property
    def export_dir(self) -> Path:
        return self.home / "Desktop"


def env_flag(name: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Return True when ``name`` is set to a truthy value."""
    env = os.environ if environ is None else environ
    value = env.get(name)
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def resolve_home(environ: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if environ is None else environ
    override = env.get("MOLE_HOME")
    if override:
        return Path(override).expanduser()
    try:
        return Path.home()
    except (RuntimeError, KeyError) as exc:
        raise StartupError(f"Cannot resolve home directory: {exc}") from exc


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    return resolve_home(environ) / ".config" / "mole" / "settings.json"


def load_settings(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from JSON config file, with environment variable overrides.

    Priority order:
    1. Environment variables
    2. JSON config file
    3. Defaults

    Args:
        path: Path to JSON config file, or None for the default location

    Returns:
        Settings object with resolved values
    """
    env = os.environ if environ is None else environ
    home = resolve_home(env)
    config_path = path if path is not None else home / ".config" / "mole" / "settings.json"

    json_settings: dict = {}
    if config_path.exists():
        try:
            json_settings = json.loads(config_path.read_text())
        except json.JSONDecodeError as exc:
            raise CorruptStateError(f"Failed to parse {config_path}: {exc}") from exc
        if not isinstance(json_settings, dict):
            raise CorruptStateError(f"Settings file {config_path} must hold a JSON object")

    large_file_bytes = _int_setting(
        env.get("MOLE_LARGE_FILE_BYTES"),
        json_settings.get("large_file_bytes"),
        _DEFAULT_LARGE_FILE_BYTES,
        "large_file_bytes",
    )
    if large_file_bytes <= 0:
        raise ValidationError(f"large_file_bytes must be positive: {large_file_bytes}")

    retention = _int_setting(
        env.get("MOLE_TRASH_RETENTION_DAYS"),
        json_settings.get("trash_retention_days"),
        _DEFAULT_TRASH_RETENTION_DAYS,
        "trash_retention_days",
    )
    if retention < 0:
        raise ValidationError(f"trash_retention_days must not be negative: {retention}")

    return Settings(
        home=home,
        projects_enabled=env_flag(FEATURE_FLAG_ENV, env),
        large_file_bytes=large_file_bytes,
        trash_retention_days=retention,
    )


def _int_setting(env_value: Optional[str], config_value, default: int, name: str) -> int:
    raw = env_value if env_value else config_value
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {name}: {raw!r}") from exc
