"""Pinned-path list shared across tool instances."""

from __future__ import annotations

import logging
from pathlib import Path

from mole.core.models import FocusList
from mole.errors import MoleError
from mole.settings import Settings

from .persistence import DualSinkWriter, dump_json, read_json

logger = logging.getLogger(__name__)


class FocusStore:
    """Reads the primary focus file with a legacy fallback; writes both."""

    def __init__(self, settings: Settings) -> None:
        self._writer = DualSinkWriter(settings.focus_path, (settings.legacy_focus_path,))

    @property
    def path(self) -> Path:
        return self._writer.primary

    def load(self) -> FocusList:
        """Return the first readable focus list, or an empty one.

        Absence is the normal initial state, so this never raises.
        """
        for candidate in self._writer.paths:
            try:
                data = read_json(candidate)
                if data is None:
                    continue
                return FocusList.from_dict(data)
            except (MoleError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Ignoring unreadable focus file %s: %s", candidate, exc)
        return FocusList()

    def save(self, focus: FocusList) -> None:
        self._writer.write(dump_json(focus.to_dict()))
