"""Unit tests for settings resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mole.errors import CorruptStateError, StartupError, ValidationError
from mole.settings import Settings, default_config_path, env_flag, load_settings, resolve_home


def test_default_config_path_is_deterministic(monkeypatch) -> None:
    monkeypatch.delenv("MOLE_HOME", raising=False)
    monkeypatch.setenv("HOME", "/tmp/mole-home")
    assert default_config_path() == Path("/tmp/mole-home/.config/mole/settings.json")


def test_derived_locations() -> None:
    settings = Settings(home=Path("/h"))
    assert settings.focus_path == Path("/h/.orbit/focus.json")
    assert settings.legacy_focus_path == Path("/h/.config/mole/focus.json")
    assert settings.session_path == Path("/h/.orbit/session.json")
    assert settings.legacy_session_path == Path("/h/.mole/session.json")
    assert settings.trash_dir == Path("/h/.mole/trash")
    assert settings.external_index_path == Path("/h/.orbit/index.json")


@pytest.mark.parametrize("value", ["1", "true", "YES", " on ", "enabled"])
def test_env_flag_truthy(value: str) -> None:
    assert env_flag("FLAG", {"FLAG": value})


@pytest.mark.parametrize("value", ["", "0", "false", "off", "nope"])
def test_env_flag_falsy(value: str) -> None:
    assert not env_flag("FLAG", {"FLAG": value})


def test_env_flag_unset() -> None:
    assert not env_flag("FLAG", {})


def test_resolve_home_override() -> None:
    assert resolve_home({"MOLE_HOME": "/custom"}) == Path("/custom")


def test_resolve_home_failure(monkeypatch) -> None:
    def boom():
        raise RuntimeError("no home")

    monkeypatch.setattr(Path, "home", staticmethod(boom))
    with pytest.raises(StartupError):
        resolve_home({})


def test_defaults(home: Path) -> None:
    settings = load_settings()
    assert settings.home == home
    assert not settings.projects_enabled
    assert settings.large_file_bytes == 100 * 1024 * 1024
    assert settings.trash_retention_days == 7


def test_feature_flag_enables_projects(projects_on) -> None:
    assert load_settings().projects_enabled


def test_config_file_then_env_priority(home: Path, monkeypatch) -> None:
    config = home / "settings.json"
    config.write_text(json.dumps({"large_file_bytes": 2048, "trash_retention_days": 3}))

    settings = load_settings(config)
    assert settings.large_file_bytes == 2048
    assert settings.trash_retention_days == 3

    monkeypatch.setenv("MOLE_TRASH_RETENTION_DAYS", "30")
    assert load_settings(config).trash_retention_days == 30


def test_default_config_location_is_read(home: Path) -> None:
    config = home / ".config" / "mole" / "settings.json"
    config.parent.mkdir(parents=True)
    config.write_text(json.dumps({"large_file_bytes": 99}))
    assert load_settings().large_file_bytes == 99


def test_malformed_config(home: Path) -> None:
    config = home / "settings.json"
    config.write_text("{")
    with pytest.raises(CorruptStateError):
        load_settings(config)


def test_config_must_be_object(home: Path) -> None:
    config = home / "settings.json"
    config.write_text("[]")
    with pytest.raises(CorruptStateError):
        load_settings(config)


@pytest.mark.parametrize(
    "env,value",
    [
        ("MOLE_LARGE_FILE_BYTES", "0"),
        ("MOLE_LARGE_FILE_BYTES", "big"),
        ("MOLE_TRASH_RETENTION_DAYS", "-1"),
    ],
)
def test_invalid_values(home: Path, monkeypatch, env: str, value: str) -> None:
    monkeypatch.setenv(env, value)
    with pytest.raises(ValidationError):
        load_settings()
