"""Sequential size scanner producing the live listing.

Symlink policy: symlinks are sized by their own lstat and never followed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from threading import Lock

from mole.core.models import Entry

LARGE_FILE_LIMIT = 100


class ProgressCounter:
    """Monotonic counter written by background work and read by the renderer."""

    def __init__(self) -> None:
        self._value = 0
        self._lock = Lock()

    def add(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        return self._value


@dataclass
class ScanProgress:
    files: ProgressCounter = field(default_factory=ProgressCounter)
    dirs: ProgressCounter = field(default_factory=ProgressCounter)
    bytes: ProgressCounter = field(default_factory=ProgressCounter)


@dataclass(frozen=True)
class ScanResult:
    entries: tuple[Entry, ...]
    large_files: tuple[Entry, ...]

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries if entry.size > 0)


class DirectoryScanner:
    """Lists a directory and sizes every child."""

    def __init__(self, large_file_bytes: int, large_file_limit: int = LARGE_FILE_LIMIT) -> None:
        self.large_file_bytes = large_file_bytes
        self.large_file_limit = large_file_limit

    def list_entries(self, root: Path) -> list[Entry]:
        """Immediate children with sizes still pending."""
        entries = [Entry.from_path(child) for child in sorted(root.iterdir())]
        return entries

    def scan(self, root: Path, progress: ScanProgress | None = None) -> ScanResult:
        progress = progress or ScanProgress()
        large: list[Entry] = []
        resolved: list[Entry] = []
        for entry in self.list_entries(root):
            if entry.is_dir:
                size = self._measure_dir(entry.path, progress, large)
            else:
                size = self._file_size(entry.path)
                progress.files.add()
                progress.bytes.add(size)
                self._note_large(entry.path, size, large)
            resolved.append(entry.resolved(size))

        resolved.sort(key=lambda e: (-e.size, e.name))
        large.sort(key=lambda e: (-e.size, str(e.path)))
        return ScanResult(entries=tuple(resolved), large_files=tuple(large[: self.large_file_limit]))

    def _measure_dir(self, directory: Path, progress: ScanProgress, large: list[Entry]) -> int:
        total = 0
        for dirpath, dirnames, filenames in os.walk(directory, followlinks=False):
            progress.dirs.add()
            for name in filenames:
                path = Path(dirpath) / name
                size = self._file_size(path)
                total += size
                progress.files.add()
                progress.bytes.add(size)
                self._note_large(path, size, large)
        return total

    def _note_large(self, path: Path, size: int, large: list[Entry]) -> None:
        if size >= self.large_file_bytes:
            large.append(Entry.from_path(path, size=size))

    @staticmethod
    def _file_size(path: Path) -> int:
        try:
            return path.lstat().st_size
        except OSError:
            return 0
