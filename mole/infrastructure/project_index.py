"""Project discovery, fingerprint index persistence and duplicate queries."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional

from mole.core.duplicates import group_duplicates
from mole.core.fingerprint import (
    SKIP_DIRS,
    detect_markers,
    hash_fingerprint,
    measure_tree,
)
from mole.core.models import DuplicateGroup, Entry, FocusList, ProjectIndex, ProjectRecord, utc_now
from mole.errors import CorruptStateError, IndexNotFoundError
from mole.settings import Settings

from .focus_store import FocusStore
from .persistence import atomic_write, dump_json, read_json

logger = logging.getLogger(__name__)

MAX_DEPTH = 4
INDEX_DIRNAME = ".mole"
INDEX_FILENAME = "projects.json"
INDEX_VERSION = "0.1"


def index_path(root: Path) -> Path:
    return root / INDEX_DIRNAME / INDEX_FILENAME


class FingerprintIndex:
    """Discovers project roots below a directory and keeps their fingerprints.

    Symlink policy: symlinked directories are neither classified nor entered.
    """

    def __init__(self, settings: Settings, focus_store: FocusStore, now_fn=None) -> None:
        self.settings = settings
        self.focus_store = focus_store
        self._now_fn = now_fn or utc_now

    def discover(
        self,
        root: Path,
        progress: Optional[Callable[[str], None]] = None,
    ) -> ProjectIndex:
        """Walk ``root`` and write a fresh index, replacing any previous one.

        Args:
            root: Directory to index
            progress: Optional callback receiving each visited relative path

        Returns:
            The index that was written
        """
        root_abs = Path(os.path.abspath(root))
        focus = self.focus_store.load()
        records: list[ProjectRecord] = []

        for dirpath, dirnames, _ in os.walk(root_abs, followlinks=False):
            dirnames.sort()
            directory = Path(dirpath)
            descend: list[str] = []
            for name in dirnames:
                child = directory / name
                rel = child.relative_to(root_abs)
                if len(rel.parts) - 1 > MAX_DEPTH:
                    continue
                if name in SKIP_DIRS or child.is_symlink():
                    continue
                if progress is not None:
                    progress(rel.as_posix())
                markers = detect_markers(child)
                if markers.is_project:
                    records.append(self._record(child, rel.as_posix(), markers, focus))
                    # Project roots are atomic.
                    continue
                descend.append(name)
            dirnames[:] = descend

        index = ProjectIndex(
            version=INDEX_VERSION,
            root=str(root_abs),
            generated_at=self._now_fn(),
            projects=tuple(records),
        )
        self.save(index)
        logger.info("Indexed %d project(s) under %s", len(records), root_abs)
        return index

    def _record(self, directory: Path, rel: str, markers, focus: FocusList) -> ProjectRecord:
        stats = measure_tree(directory)
        return ProjectRecord(
            path=rel,
            kind="standalone",
            pinned=focus.is_pinned(rel),
            latest_mtime=stats.latest_mtime,
            size_bytes=stats.size_bytes,
            artifact_count=stats.artifact_count,
            has_git=markers.has_git,
            has_rust=markers.has_rust,
            has_node=markers.has_node,
            has_python=markers.has_python,
            fingerprint=hash_fingerprint(rel, stats.size_bytes, stats.latest_mtime),
        )

    def save(self, index: ProjectIndex) -> Path:
        path = index_path(Path(index.root))
        atomic_write(path, dump_json(index.to_dict()))
        return path

    def load(self, root: Path) -> ProjectIndex:
        """Load the index for ``root``.

        Raises:
            IndexNotFoundError: discovery has not run for this root
            CorruptStateError: the index file cannot be parsed
        """
        path = index_path(Path(os.path.abspath(root)))
        data = read_json(path)
        if data is None:
            raise IndexNotFoundError(f"No project index at {path}")
        try:
            return ProjectIndex.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise CorruptStateError(f"Invalid project index {path}: {exc}") from exc

    def group_duplicates(
        self,
        index: ProjectIndex,
        entries: Iterable[Entry],
        root: Path,
    ) -> list[DuplicateGroup]:
        if not self.settings.projects_enabled:
            return []
        return group_duplicates(index, entries, root)

    def duplicates_for(self, root: Path, entries: Iterable[Entry]) -> list[DuplicateGroup]:
        """Load the saved index for ``root`` and group ``entries`` against it.

        A missing index means no duplicates are known yet.
        """
        if not self.settings.projects_enabled:
            return []
        try:
            index = self.load(root)
        except IndexNotFoundError:
            return []
        return self.group_duplicates(index, entries, root)
