"""Application bootstrap with dependency injection."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from .controller import AppController
from .core.state import AppModel
from .errors import MoleError
from .infrastructure.event_loop import EventLoop
from .infrastructure.external_index import load_external_entries
from .infrastructure.focus_store import FocusStore
from .infrastructure.project_index import FingerprintIndex
from .infrastructure.scanner import DirectoryScanner
from .infrastructure.session_store import SessionStore
from .infrastructure.trash import TrashVault
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)


class MoleApp:
    """Wires every component from one resolved Settings object."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.focus = FocusStore(settings)
        self.index = FingerprintIndex(settings, self.focus)
        self.trash = TrashVault(settings.trash_dir)
        self.sessions = SessionStore(settings)
        self.scanner = DirectoryScanner(settings.large_file_bytes)

    @classmethod
    def from_env(cls, config_path: Optional[Path] = None) -> MoleApp:
        """Create the app from environment variables and the optional config file.

        Environment variables:
            MOLE_HOME: overrides the home directory
            MO_FEATURE_PROJECTS: enables sessions, duplicates and pins
        """
        return cls(load_settings(config_path))

    def create_controller(self, root: Path) -> AppController:
        root_abs = Path(os.path.abspath(root))
        seed = None
        try:
            seed = load_external_entries(self.settings.external_index_path, root_abs)
        except MoleError as exc:
            logger.warning("Ignoring external index: %s", exc)
        return AppController(
            AppModel(path=root_abs),
            self.settings,
            trash=self.trash,
            index=self.index,
            focus=self.focus,
            sessions=self.sessions,
            scanner=self.scanner,
            seed_entries=seed,
        )

    def create_loop(self, root: Path) -> EventLoop:
        return EventLoop(self.create_controller(root))
