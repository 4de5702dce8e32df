"""Seed a listing from the shared read-only project index."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from mole.core.models import PENDING_SIZE, Entry
from mole.errors import CorruptStateError

from .persistence import read_json

logger = logging.getLogger(__name__)


def load_external_entries(index_file: Path, target_root: Path) -> Optional[list[Entry]]:
    """Entries from ``index_file`` when its root resolves to ``target_root``.

    Returns None when the file is absent or describes another root.
    """
    data = read_json(index_file)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise CorruptStateError(f"External index {index_file} must hold a JSON object")

    root = Path(str(data.get("root") or "."))
    if not root.is_absolute():
        root = Path.cwd() / root
    root_abs = Path(os.path.abspath(root))
    if root_abs != Path(os.path.abspath(target_root)):
        logger.debug("External index root %s does not match %s", root_abs, target_root)
        return None

    now = datetime.now(timezone.utc)
    entries: list[Entry] = []
    for project in data.get("projects") or []:
        try:
            path = Path(project["path"])
        except (KeyError, TypeError) as exc:
            raise CorruptStateError(f"Invalid project in {index_file}: {exc}") from exc
        if not path.is_absolute():
            path = root_abs / path
        size = project.get("size_bytes")
        entries.append(
            Entry(
                name=path.name,
                path=path,
                size=int(size) if size is not None else PENDING_SIZE,
                is_dir=True,
                last_access=now,
            )
        )
    return entries
