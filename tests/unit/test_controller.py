"""Unit tests for the mode state machine.

Commands returned by the controller are run inline so every transition is
deterministic.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mole.controller import AppController
from mole.core.messages import CommandFailed, KeyPress, ScanCompleted
from mole.core.models import Session, utc_now
from mole.core.state import AppModel, ExportFormat, Mode, View
from mole.errors import ValidationError
from mole.infrastructure.focus_store import FocusStore
from mole.infrastructure.project_index import FingerprintIndex
from mole.infrastructure.scanner import DirectoryScanner
from mole.infrastructure.session_store import SessionStore
from mole.infrastructure.trash import TrashVault
from tests.helpers.fs import ProjectSpec, build_project, build_tree


def _controller(settings, root: Path, **kwargs) -> AppController:
    focus = FocusStore(settings)
    return AppController(
        AppModel(path=root),
        settings,
        trash=TrashVault(settings.trash_dir),
        index=FingerprintIndex(settings, focus),
        focus=focus,
        sessions=SessionStore(settings),
        scanner=DirectoryScanner(settings.large_file_bytes),
        **kwargs,
    )


def _drain(controller: AppController, commands) -> None:
    queue = list(commands)
    while queue:
        command = queue.pop(0)
        queue.extend(controller.update(command()))


def _press(controller: AppController, *keys: str) -> None:
    for key in keys:
        _drain(controller, controller.update(KeyPress(key)))


@pytest.fixture
def populated(workspace: Path) -> Path:
    build_tree(workspace, {"big.bin": 300, "mid.txt": 200, "small.txt": 100})
    return workspace


@pytest.fixture
def started(settings, populated: Path) -> AppController:
    controller = _controller(settings, populated)
    _drain(controller, controller.init())
    return controller


class TestScanAndNavigation:
    """Test the initial scan and cursor movement."""

    def test_init_scans_root(self, started: AppController):
        assert [e.name for e in started.model.entries] == ["big.bin", "mid.txt", "small.txt"]
        assert not started.model.scanning
        assert started.model.status == ""

    def test_move_clamps_to_bounds(self, started: AppController):
        _press(started, "k")
        assert started.model.selected == 0
        _press(started, "j", "down", "j", "j")
        assert started.model.selected == 2
        _press(started, "up")
        assert started.model.selected == 1

    def test_space_toggles_multi_selection_and_esc_clears(self, started: AppController):
        _press(started, "space", "j", "space")
        assert len(started.model.multi_selected) == 2
        _press(started, "j", "k", "space")
        assert len(started.model.multi_selected) == 1
        _press(started, "esc")
        assert started.model.multi_selected == set()

    def test_seed_entries_shown_before_scan(self, settings, populated: Path):
        from mole.core.models import Entry

        seed = [Entry(name="seeded", path=populated / "seeded", is_dir=True)]
        controller = _controller(settings, populated, seed_entries=seed)
        commands = controller.init()
        assert [e.name for e in controller.model.entries] == ["seeded"]
        assert controller.model.scanning
        _drain(controller, commands)
        assert "seeded" not in [e.name for e in controller.model.entries]

    def test_scan_failure_sets_status(self, started: AppController):
        started.update(ScanCompleted(entries=(), error=OSError("denied")))
        assert started.model.status == "Scan failed: denied"

    def test_command_failure_sets_status(self, started: AppController):
        started.update(CommandFailed(RuntimeError("boom")))
        assert started.model.status == "Error: boom"

    def test_unknown_message_rejected(self, started: AppController):
        with pytest.raises(ValidationError):
            started.update(object())


class TestModes:
    """Test mode toggles and badge precedence."""

    def test_toggles_and_badges(self, started: AppController):
        model = started.model
        assert model.mode is Mode.BROWSE
        _press(started, "l")
        assert model.mode is Mode.LARGE_FILES
        _press(started, "d")
        assert model.mode is Mode.DUPLICATES
        assert model.view is View.DUPLICATES
        _press(started, "/")
        assert model.mode is Mode.SEARCH
        _press(started, "enter", "d", "l")
        assert model.mode is Mode.BROWSE

    def test_search_typing_filters(self, started: AppController):
        _press(started, "/", "m", "i", "d")
        assert started.model.search_query == "mid"
        assert [e.name for e in started.model.visible_entries()] == ["mid.txt"]
        _press(started, "backspace")
        assert started.model.search_query == "mi"
        _press(started, "enter")
        assert not started.model.search_mode
        assert started.model.search_query == "mi"

    def test_search_esc_clears_query(self, started: AppController):
        _press(started, "/", "x", "esc")
        assert started.model.search_query == ""
        assert not started.model.search_mode

    def test_search_mode_swallows_command_keys(self, started: AppController):
        _press(started, "/", "q")
        assert not started.model.quitting
        assert started.model.search_query == "q"


class TestExport:
    """Test the export modal."""

    def test_modal_cycles_and_previews(self, started: AppController):
        _press(started, "e")
        modal = started.model.export_modal
        assert started.model.view is View.EXPORT
        assert modal.preview == "No destination set"
        _press(started, "tab")
        assert started.model.export_modal.format is ExportFormat.CSV
        _press(started, "j")
        assert started.model.export_modal.format is ExportFormat.JSON
        _press(started, "k", "d")
        assert started.model.export_modal.destination.endswith("mole_export.csv")
        assert started.model.export_modal.preview.startswith("Will write CSV to ")

    def test_export_without_destination_fails(self, started: AppController):
        _press(started, "e", "enter")
        assert started.model.status == "Export failed: no destination"
        assert not started.model.export_modal.active

    def test_export_writes_visible_entries(self, started: AppController, tmp_path: Path):
        destination = tmp_path / "out.json"
        _press(started, "/", "s", "m", "a", "l", "l", "enter", "e")
        started.set_export_destination(str(destination))
        _press(started, "enter")

        assert started.model.status == f"Exported to {destination}"
        assert [row["name"] for row in json.loads(destination.read_text())] == ["small.txt"]

    def test_esc_closes_without_writing(self, started: AppController):
        _press(started, "e", "d", "esc")
        assert not started.model.export_modal.active
        assert started.model.status == ""

    def test_destination_requires_open_modal(self, started: AppController):
        with pytest.raises(ValidationError):
            started.set_export_destination("/tmp/x.json")


class TestPin:
    """Test pin toggling."""

    def test_pin_and_unpin(self, started: AppController, settings):
        _press(started, "p")
        assert started.model.status == "Pinned big.bin"
        assert FocusStore(settings).load().pinned == ("big.bin",)
        assert started.is_pinned(started.model.entries[0])
        _press(started, "p")
        assert started.model.status == "Unpinned big.bin"
        assert FocusStore(settings).load().pinned == ()

    def test_pin_is_noop_when_flag_off(self, settings_off, populated: Path):
        controller = _controller(settings_off, populated)
        _drain(controller, controller.init())
        _press(controller, "p")
        assert controller.model.status == ""
        assert not settings_off.focus_path.exists()


class TestDeleteAndUndo:
    """Test the confirm/delete/undo cycle."""

    def test_delete_requires_confirmation(self, started: AppController, populated: Path):
        _press(started, "x")
        assert started.model.status == "Move 1 item(s) to trash? (y to confirm)"
        _press(started, "n")
        assert started.model.status == "Delete cancelled"
        assert (populated / "big.bin").exists()

    def test_delete_then_undo_restores(self, started: AppController, populated: Path):
        _press(started, "space", "j", "space", "x", "y")

        assert not (populated / "big.bin").exists()
        assert not (populated / "mid.txt").exists()
        assert started.model.status == "Moved 2 item(s) to trash (ctrl+z to undo)"
        assert [e.name for e in started.model.entries] == ["small.txt"]
        assert started.model.multi_selected == set()
        assert started.model.last_undo is not None

        _press(started, "ctrl+z")

        assert (populated / "big.bin").exists()
        assert (populated / "mid.txt").exists()
        assert started.model.status == "Restored 2 item(s)"
        assert started.model.last_undo is None
        assert len(started.model.entries) == 3

    def test_second_delete_overwrites_undo_slot(self, started: AppController, populated: Path):
        _press(started, "x", "y")
        first = started.model.last_undo
        _press(started, "x", "y")
        assert started.model.last_undo is not first
        _press(started, "u")
        assert (populated / "mid.txt").exists()
        assert not (populated / "big.bin").exists()
        _press(started, "u")
        assert started.model.status == "Nothing to undo"

    def test_partial_undo_clears_slot(self, started: AppController, populated: Path):
        _press(started, "space", "j", "space", "x", "y")
        (populated / "mid.txt").write_text("new")

        _press(started, "ctrl+z")

        assert started.model.status.startswith("Undo failed after restoring 1 of 2 item(s)")
        assert started.model.last_undo is None
        assert (populated / "big.bin").exists()

    def test_delete_failure_reports_and_rescans(self, started: AppController, populated: Path):
        (populated / "big.bin").unlink()
        _press(started, "x", "y")
        assert started.model.status.startswith("Delete failed:")
        assert started.model.last_undo is None
        assert "big.bin" not in [e.name for e in started.model.entries]

    def test_delete_under_filter_only_touches_visible_entry(self, started: AppController, populated: Path):
        """With a search filter active the cursor resolves against the filtered listing."""
        _press(started, "/", "s", "m", "a", "l", "l", "enter")
        assert started.model.selected_entry().name == "small.txt"

        _press(started, "x", "y")

        assert not (populated / "small.txt").exists()
        assert (populated / "big.bin").exists()
        assert (populated / "mid.txt").exists()
        assert [e.name for e in started.model.entries] == ["big.bin", "mid.txt"]

    def test_cursor_moves_within_filtered_listing(self, started: AppController):
        _press(started, "/", ".", "t", "x", "t", "enter")
        _press(started, "j", "j", "j")
        assert started.model.selected == 1
        assert started.model.selected_entry().name == "small.txt"
        _press(started, "space", "p")
        assert started.model.multi_selected == {str(started.model.path / "small.txt")}
        assert started.model.status == "Pinned small.txt"

    def test_nothing_selected(self, settings, workspace: Path):
        controller = _controller(settings, workspace)
        _drain(controller, controller.init())
        _press(controller, "x")
        assert controller.model.status == "Nothing selected"

    def test_delete_records_manifest(self, started: AppController, settings):
        _press(started, "x", "y")
        manifest = started.model.last_undo.trash_root / "transaction.json"
        assert manifest.exists()
        assert len(TrashVault(settings.trash_dir).list_transactions()) == 1


class TestDiscoveryAndDuplicates:
    """Test discovery from inside the session."""

    def test_discovery_then_duplicate_view(self, settings, workspace: Path):
        build_project(workspace, ProjectSpec(name="app"))
        controller = _controller(settings, workspace)
        _drain(controller, controller.init())

        _press(controller, "g")

        assert controller.model.status == "Indexed 1 project(s)"
        assert controller.discovery_progress.value >= 1
        assert controller.duplicate_groups() == []


class TestSession:
    """Test session restore at startup and save on quit."""

    def test_quit_saves_and_next_start_restores(self, settings, populated: Path):
        first = _controller(settings, populated)
        _drain(first, first.init())
        _press(first, "j", "space", "l", "q")
        assert first.model.quitting
        assert settings.session_path.exists()

        second = _controller(settings, populated)
        _drain(second, second.init())

        assert second.model.status == "Session restored"
        assert second.model.selected == 1
        assert second.model.show_large_files
        assert second.model.multi_selected == {str(populated / "mid.txt")}

    def test_corrupt_session_is_reported_not_fatal(self, settings, populated: Path):
        settings.session_path.parent.mkdir(parents=True)
        settings.session_path.write_text("{")
        controller = _controller(settings, populated)
        _drain(controller, controller.init())
        assert len(controller.model.entries) == 3

    def test_session_for_other_root_is_not_applied(self, settings, populated: Path, tmp_path: Path):
        SessionStore(settings).save(Session(path=str(tmp_path / "other"), timestamp=utc_now(), selected=2))
        controller = _controller(settings, populated)
        _drain(controller, controller.init())
        assert controller.model.selected == 0

    def test_quit_with_flag_off_writes_nothing(self, settings_off, populated: Path):
        controller = _controller(settings_off, populated)
        _drain(controller, controller.init())
        _press(controller, "q")
        assert controller.model.quitting
        assert not settings_off.session_path.exists()
