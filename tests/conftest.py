"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from mole.settings import FEATURE_FLAG_ENV, Settings


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolated home directory for every persisted file."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.setenv("MOLE_HOME", str(home_dir))
    monkeypatch.delenv(FEATURE_FLAG_ENV, raising=False)
    monkeypatch.delenv("MOLE_LARGE_FILE_BYTES", raising=False)
    monkeypatch.delenv("MOLE_TRASH_RETENTION_DAYS", raising=False)
    return home_dir


@pytest.fixture
def make_settings(home: Path) -> Callable[..., Settings]:
    def factory(**overrides) -> Settings:
        return Settings(home=home, **overrides)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    """Settings with the projects capability enabled."""
    return make_settings(projects_enabled=True)


@pytest.fixture
def settings_off(make_settings) -> Settings:
    return make_settings(projects_enabled=False)


@pytest.fixture
def projects_on(monkeypatch: pytest.MonkeyPatch, home: Path) -> None:
    monkeypatch.setenv(FEATURE_FLAG_ENV, "1")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root
