"""Time-bounded persistence of the UI snapshot across restarts."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from mole.core.models import SESSION_TTL, Session, utc_now
from mole.core.state import AppModel
from mole.errors import CorruptStateError, IOFailure
from mole.settings import Settings

from .persistence import DualSinkWriter, dump_json, read_json

logger = logging.getLogger(__name__)


class SessionStore:
    """Saves and restores sessions; every entry point honours the projects flag."""

    def __init__(
        self,
        settings: Settings,
        now_fn: Optional[Callable[[], datetime]] = None,
        ttl: timedelta = SESSION_TTL,
    ) -> None:
        self.settings = settings
        self.ttl = ttl
        self._now_fn = now_fn or utc_now
        self._writer = DualSinkWriter(settings.session_path, (settings.legacy_session_path,))

    def save(self, session: Session) -> None:
        if not self.settings.projects_enabled:
            return
        self._writer.write(dump_json(session.to_dict()))
        logger.debug("Saved session for %s", session.path)

    def load(self) -> Optional[Session]:
        """Return the first stored session, or None.

        Expired sessions are deleted here rather than by a background sweep.

        Raises:
            CorruptStateError: a session file exists but cannot be parsed
        """
        if not self.settings.projects_enabled:
            return None
        for candidate in self._writer.paths:
            data = read_json(candidate)
            if data is None:
                continue
            try:
                session = Session.from_dict(data)
            except (KeyError, TypeError, ValueError, AttributeError) as exc:
                raise CorruptStateError(f"Invalid session file {candidate}: {exc}") from exc
            if session.is_expired(self._now_fn(), self.ttl):
                logger.info("Discarding expired session %s", candidate)
                try:
                    candidate.unlink()
                except OSError as exc:
                    logger.warning("Failed to remove expired session %s: %s", candidate, exc)
                return None
            return session
        return None

    def apply(self, session: Optional[Session], model: AppModel) -> bool:
        """Restore ``session`` into ``model`` when both refer to the same root."""
        if session is None or session.path != str(model.path):
            return False
        model.search_query = session.search_query
        model.search_mode = session.search_mode
        model.duplicates_mode = session.duplicates_mode
        model.show_large_files = session.show_large_files
        if 0 <= session.selected < len(model.visible_entries()):
            model.selected = session.selected
        if session.offset >= 0:
            model.offset = session.offset
        model.multi_selected = set(session.multi_selected)
        model.status = "Session restored"
        return True

    def clear(self) -> None:
        """Delete both session files, reporting every failure at the end."""
        failures = self._writer.remove()
        if failures:
            detail = "; ".join(f"{path}: {exc}" for path, exc in failures)
            raise IOFailure(f"Failed to clear session: {detail}")
