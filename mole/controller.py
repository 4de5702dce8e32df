"""Mode state machine: the only writer of the application model."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from .core.fingerprint import relative_key
from .core.messages import (
    Command,
    CommandFailed,
    DeleteCompleted,
    DiscoveryCompleted,
    KeyPress,
    Message,
    ScanCompleted,
    UndoCompleted,
)
from .core.models import DuplicateGroup, Entry, FocusList, Session, TrashTransaction, utc_now
from .core.state import AppModel, ExportFormat, ExportModal
from .errors import MoleError, RestoreError, ValidationError
from .infrastructure.focus_store import FocusStore
from .infrastructure.project_index import FingerprintIndex
from .infrastructure.scanner import DirectoryScanner, ProgressCounter, ScanProgress
from .infrastructure.session_store import SessionStore
from .infrastructure.trash import TrashVault
from .services.export import export_entries
from .settings import Settings

logger = logging.getLogger(__name__)

UNDO_KEYS = ("ctrl+z", "u")


class AppController:
    """Turns key presses and completion messages into model updates and commands.

    ``update`` never blocks on the filesystem for long-running work; it
    returns commands that the event loop runs in the background.
    """

    def __init__(
        self,
        model: AppModel,
        settings: Settings,
        *,
        trash: TrashVault,
        index: FingerprintIndex,
        focus: FocusStore,
        sessions: SessionStore,
        scanner: DirectoryScanner,
        export_fn: Callable[..., Path] = export_entries,
        seed_entries: Optional[list[Entry]] = None,
        now_fn=None,
    ) -> None:
        self.model = model
        self.settings = settings
        self.trash = trash
        self.index = index
        self.focus = focus
        self.sessions = sessions
        self.scanner = scanner
        self.export_fn = export_fn
        self.scan_progress = ScanProgress()
        self.discovery_progress = ProgressCounter()
        self._seed_entries = seed_entries
        self._pending_session: Optional[Session] = None
        self._now_fn = now_fn or utc_now

    # -- lifecycle ---------------------------------------------------------

    def init(self) -> list[Command]:
        try:
            self._pending_session = self.sessions.load()
        except MoleError as exc:
            logger.warning("Ignoring stored session: %s", exc)
            self.model.status = f"Session ignored: {exc}"
        if self._seed_entries:
            self.model.entries = list(self._seed_entries)
        return [self._start_scan()]

    def update(self, message: Message) -> list[Command]:
        if isinstance(message, KeyPress):
            return self._handle_key(message.key)
        if isinstance(message, ScanCompleted):
            return self._on_scan(message)
        if isinstance(message, DeleteCompleted):
            return self._on_delete(message)
        if isinstance(message, UndoCompleted):
            return self._on_undo(message)
        if isinstance(message, DiscoveryCompleted):
            return self._on_discovery(message)
        if isinstance(message, CommandFailed):
            self.model.status = f"Error: {message.error}"
            return []
        raise ValidationError(f"Unknown message: {message!r}")

    # -- queries for the renderer -----------------------------------------

    def duplicate_groups(self) -> list[DuplicateGroup]:
        """Recomputed on every call from the saved index and the current listing."""
        return self.index.duplicates_for(self.model.path, self.model.entries)

    def is_pinned(self, entry: Entry, focus: Optional[FocusList] = None) -> bool:
        """Pass ``focus`` to reuse one loaded list across many entries."""
        if not self.settings.projects_enabled:
            return False
        try:
            rel = relative_key(self.model.path, entry.path)
        except ValueError:
            return False
        if focus is None:
            focus = self.focus.load()
        return focus.is_pinned(rel)

    # -- key handling ------------------------------------------------------

    def _handle_key(self, key: str) -> list[Command]:
        model = self.model
        if model.export_modal.active:
            return self._export_key(key)
        if model.confirm_delete:
            return self._confirm_key(key)
        if model.search_mode:
            return self._search_key(key)

        if key in ("up", "k"):
            self._move(-1)
        elif key in ("down", "j"):
            self._move(1)
        elif key == "space":
            self._toggle_multi()
        elif key == "esc":
            model.multi_selected.clear()
        elif key == "/":
            model.search_mode = True
        elif key == "d":
            model.duplicates_mode = not model.duplicates_mode
        elif key == "l":
            model.show_large_files = not model.show_large_files
        elif key == "e":
            model.export_modal = ExportModal(active=True)
            model.export_modal.refresh_preview()
        elif key == "p":
            self._toggle_pin()
        elif key == "x":
            self._request_delete()
        elif key in UNDO_KEYS:
            return self._start_undo()
        elif key == "g":
            return self._start_discovery()
        elif key == "r":
            return [] if model.scanning else [self._start_scan()]
        elif key == "q":
            self._quit()
        return []

    def _move(self, delta: int) -> None:
        model = self.model
        count = len(model.visible_entries())
        if not count:
            return
        model.selected = min(max(model.selected + delta, 0), count - 1)
        if model.selected < model.offset:
            model.offset = model.selected

    def _toggle_multi(self) -> None:
        entry = self.model.selected_entry()
        if entry is None:
            return
        key = str(entry.path)
        if key in self.model.multi_selected:
            self.model.multi_selected.discard(key)
        else:
            self.model.multi_selected.add(key)

    def _search_key(self, key: str) -> list[Command]:
        model = self.model
        if key == "enter":
            model.search_mode = False
        elif key == "esc":
            model.search_query = ""
            model.search_mode = False
        elif key == "backspace":
            model.search_query = model.search_query[:-1]
        elif key == "space":
            model.search_query += " "
        elif len(key) == 1:
            model.search_query += key
        else:
            return []
        model.selected = 0
        model.offset = 0
        return []

    # -- export modal --------------------------------------------------------

    def _export_key(self, key: str) -> list[Command]:
        modal = self.model.export_modal
        if key == "tab":
            modal.format = modal.format.next()
        elif key == "j":
            modal.format = ExportFormat.JSON
        elif key == "k":
            modal.format = ExportFormat.CSV
        elif key == "d":
            modal.destination = str(self.settings.export_dir / f"mole_export.{modal.format.value}")
        elif key == "enter":
            self._perform_export()
            self.model.export_modal = ExportModal()
            return []
        elif key == "esc":
            self.model.export_modal = ExportModal()
            return []
        else:
            return []
        modal.refresh_preview()
        return []

    def set_export_destination(self, destination: str) -> None:
        if not self.model.export_modal.active:
            raise ValidationError("Export dialog is not open")
        self.model.export_modal.destination = destination
        self.model.export_modal.refresh_preview()

    def _perform_export(self) -> None:
        modal = self.model.export_modal
        try:
            if not modal.destination:
                raise ValidationError("no destination")
            self.export_fn(self.model.visible_entries(), Path(modal.destination), modal.format)
        except (MoleError, OSError) as exc:
            self.model.status = f"Export failed: {exc}"
            return
        self.model.status = f"Exported to {modal.destination}"

    # -- pin -----------------------------------------------------------------

    def _toggle_pin(self) -> None:
        if not self.settings.projects_enabled:
            return
        entry = self.model.selected_entry()
        if entry is None:
            return
        try:
            rel = relative_key(self.model.path, entry.path)
        except ValueError:
            return
        focus = self.focus.load()
        if focus.is_pinned(rel):
            focus = focus.without(rel)
            status = f"Unpinned {entry.name}"
        else:
            focus = focus.with_pinned(rel)
            status = f"Pinned {entry.name}"
        try:
            self.focus.save(focus)
        except MoleError as exc:
            self.model.status = f"Pin failed: {exc}"
            return
        self.model.status = status

    # -- delete / undo -------------------------------------------------------

    def _delete_targets(self) -> tuple[Path, ...]:
        model = self.model
        if model.multi_selected:
            listed = [entry.path for entry in model.entries if str(entry.path) in model.multi_selected]
            seen = {str(path) for path in listed}
            extra = [Path(p) for p in sorted(model.multi_selected) if p not in seen]
            return tuple(listed + extra)
        entry = model.selected_entry()
        return (entry.path,) if entry is not None else ()

    def _request_delete(self) -> None:
        model = self.model
        if model.deleting:
            model.status = "Delete already in progress"
            return
        targets = self._delete_targets()
        if not targets:
            model.status = "Nothing selected"
            return
        model.confirm_delete = targets
        model.status = f"Move {len(targets)} item(s) to trash? (y to confirm)"

    def _confirm_key(self, key: str) -> list[Command]:
        model = self.model
        targets = model.confirm_delete
        model.confirm_delete = ()
        if key != "y":
            model.status = "Delete cancelled"
            return []
        if model.deleting:
            model.status = "Delete already in progress"
            return []
        model.deleting = True
        model.status = f"Moving {len(targets)} item(s) to trash..."
        trash = self.trash

        def run() -> DeleteCompleted:
            try:
                transaction = trash.move_to_trash(list(targets))
            except Exception as exc:
                return DeleteCompleted(count=len(targets), error=exc)
            try:
                trash.save_manifest(transaction)
            except OSError as exc:
                logger.warning("Failed to record trash manifest in %s: %s", transaction.trash_root, exc)
            return DeleteCompleted(count=len(targets), transaction=transaction)

        return [run]

    def _on_delete(self, message: DeleteCompleted) -> list[Command]:
        model = self.model
        model.deleting = False
        if message.error is not None or message.transaction is None:
            model.status = f"Delete failed: {message.error}"
            # Part of the batch may already be in trash.
            return [] if model.scanning else [self._start_scan()]

        transaction: TrashTransaction = message.transaction
        model.last_undo = transaction
        removed = {str(item.original) for item in transaction.items}
        model.entries = [entry for entry in model.entries if str(entry.path) not in removed]
        model.large_files = [
            entry for entry in model.large_files if not _under_any(entry.path, transaction)
        ]
        model.multi_selected -= removed
        model.clamp_selection()
        model.status = f"Moved {len(transaction)} item(s) to trash (ctrl+z to undo)"
        return []

    def _start_undo(self) -> list[Command]:
        model = self.model
        if model.undoing:
            return []
        transaction = model.last_undo
        if transaction is None:
            model.status = "Nothing to undo"
            return []
        model.undoing = True
        model.status = "Restoring..."
        trash = self.trash

        def run() -> UndoCompleted:
            total = len(transaction)
            try:
                restored = trash.restore(transaction)
            except RestoreError as exc:
                return UndoCompleted(restored=exc.restored, total=total, error=exc)
            except Exception as exc:
                return UndoCompleted(restored=0, total=total, error=exc)
            return UndoCompleted(restored=restored, total=total)

        return [run]

    def _on_undo(self, message: UndoCompleted) -> list[Command]:
        model = self.model
        model.undoing = False
        # The slot is cleared even after a partial failure.
        model.last_undo = None
        if message.error is not None:
            model.status = (
                f"Undo failed after restoring {message.restored} of {message.total} item(s): {message.error}"
            )
        else:
            model.status = f"Restored {message.restored} item(s)"
        return [] if model.scanning else [self._start_scan(keep_status=True)]

    # -- discovery / scan ------------------------------------------------------

    def _start_discovery(self) -> list[Command]:
        model = self.model
        if model.discovering:
            model.status = "Discovery already running"
            return []
        model.discovering = True
        model.status = "Discovering projects..."
        index = self.index
        root = model.path
        counter = self.discovery_progress

        def run() -> DiscoveryCompleted:
            try:
                result = index.discover(root, progress=lambda _rel: counter.add())
            except Exception as exc:
                return DiscoveryCompleted(error=exc)
            return DiscoveryCompleted(index=result)

        return [run]

    def _on_discovery(self, message: DiscoveryCompleted) -> list[Command]:
        self.model.discovering = False
        if message.error is not None or message.index is None:
            self.model.status = f"Discovery failed: {message.error}"
        else:
            self.model.status = f"Indexed {len(message.index.projects)} project(s)"
        return []

    def _start_scan(self, keep_status: bool = False) -> Command:
        model = self.model
        model.scanning = True
        if not keep_status and not model.status:
            model.status = "Scanning..."
        scanner = self.scanner
        root = model.path
        progress = self.scan_progress = ScanProgress()

        def run() -> ScanCompleted:
            try:
                result = scanner.scan(root, progress)
            except Exception as exc:
                return ScanCompleted(entries=(), error=exc)
            return ScanCompleted(entries=result.entries, large_files=result.large_files)

        return run

    def _on_scan(self, message: ScanCompleted) -> list[Command]:
        model = self.model
        model.scanning = False
        if message.error is not None:
            model.status = f"Scan failed: {message.error}"
            return []
        model.entries = list(message.entries)
        model.large_files = list(message.large_files)
        model.clamp_selection()
        if model.status == "Scanning...":
            model.status = ""
        if self._pending_session is not None:
            session, self._pending_session = self._pending_session, None
            self.sessions.apply(session, model)
        return []

    # -- quit ----------------------------------------------------------------

    def _quit(self) -> None:
        try:
            self.sessions.save(self.model.snapshot(self._now_fn()))
        except MoleError as exc:
            logger.warning("Failed to save session: %s", exc)
        self.model.quitting = True


def _under_any(path: Path, transaction: TrashTransaction) -> bool:
    for item in transaction.items:
        if path == item.original or item.original in path.parents:
            return True
    return False
