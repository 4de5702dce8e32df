"""In-memory application model and its modes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .models import Entry, Session, TrashTransaction
from .search import filter_entries


class Mode(str, Enum):
    """Mode badge, in badge precedence order."""

    BROWSE = "BROWSE"
    SEARCH = "SEARCH"
    DUPLICATES = "DUPLICATES"
    LARGE_FILES = "LARGE"


class View(str, Enum):
    """What the renderer draws, resolved Export > Search > Duplicates > LargeFiles > listing."""

    EXPORT = "EXPORT"
    SEARCH = "SEARCH"
    DUPLICATES = "DUPLICATES"
    LARGE_FILES = "LARGE_FILES"
    LISTING = "LISTING"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"

    def next(self) -> ExportFormat:
        members = list(ExportFormat)
        return members[(members.index(self) + 1) % len(members)]


@dataclass
class ExportModal:
    active: bool = False
    format: ExportFormat = ExportFormat.JSON
    destination: str = ""
    preview: str = ""

    def refresh_preview(self) -> None:
        if not self.destination:
            self.preview = "No destination set"
        else:
            self.preview = f"Will write {self.format.value.upper()} to {self.destination}"


@dataclass
class AppModel:
    """The single mutable model; only the controller writes to it."""

    path: Path
    entries: list[Entry] = field(default_factory=list)
    large_files: list[Entry] = field(default_factory=list)
    selected: int = 0
    offset: int = 0
    search_query: str = ""
    search_mode: bool = False
    duplicates_mode: bool = False
    show_large_files: bool = False
    multi_selected: set[str] = field(default_factory=set)
    export_modal: ExportModal = field(default_factory=ExportModal)
    status: str = ""
    last_undo: Optional[TrashTransaction] = None
    confirm_delete: tuple[Path, ...] = ()
    scanning: bool = False
    deleting: bool = False
    undoing: bool = False
    discovering: bool = False
    quitting: bool = False

    @property
    def mode(self) -> Mode:
        if self.search_mode:
            return Mode.SEARCH
        if self.duplicates_mode:
            return Mode.DUPLICATES
        if self.show_large_files:
            return Mode.LARGE_FILES
        return Mode.BROWSE

    @property
    def view(self) -> View:
        if self.export_modal.active:
            return View.EXPORT
        if self.search_mode:
            return View.SEARCH
        if self.duplicates_mode:
            return View.DUPLICATES
        if self.show_large_files:
            return View.LARGE_FILES
        return View.LISTING

    @property
    def total_size(self) -> int:
        return sum(entry.size for entry in self.entries if entry.size > 0)

    def visible_entries(self) -> list[Entry]:
        return filter_entries(self.entries, self.search_query)

    def selected_entry(self) -> Optional[Entry]:
        """The entry under the cursor; ``selected`` indexes the visible listing."""
        visible = self.visible_entries()
        if 0 <= self.selected < len(visible):
            return visible[self.selected]
        return None

    def clamp_selection(self) -> None:
        count = len(self.visible_entries())
        if not count:
            self.selected = 0
            self.offset = 0
            return
        self.selected = min(max(self.selected, 0), count - 1)
        self.offset = min(max(self.offset, 0), self.selected)

    def snapshot(self, timestamp) -> Session:
        return Session(
            path=str(self.path),
            timestamp=timestamp,
            search_query=self.search_query,
            search_mode=self.search_mode,
            duplicates_mode=self.duplicates_mode,
            show_large_files=self.show_large_files,
            selected=self.selected,
            offset=self.offset,
            multi_selected=frozenset(self.multi_selected),
        )
