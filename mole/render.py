"""Plain-text rendering of the controller's model."""

from __future__ import annotations

from mole.core.fingerprint import relative_key
from mole.core.models import FocusList
from mole.core.search import filter_entries
from mole.core.state import View
from mole.errors import IndexNotFoundError, MoleError

LISTING_ROWS = 20
_UNITS = ("B", "KB", "MB", "GB", "TB")


def humanize_bytes(size: int) -> str:
    if size < 0:
        return "..."
    value = float(size)
    for unit in _UNITS:
        if value < 1024 or unit == _UNITS[-1]:
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


def render_lines(controller) -> list[str]:
    model = controller.model
    settings = controller.settings
    lines: list[str] = []

    if not settings.projects_enabled:
        lines.append("Enable projects mode: export MO_FEATURE_PROJECTS=1")
    visible = model.visible_entries()
    lines.append(
        f"mole  [{model.mode.value}]  Filter: {len(visible)}/{len(model.entries)}  "
        f"Projects: {'ON' if settings.projects_enabled else 'OFF'}"
    )
    lines.append(f"{model.path}  |  Total: {humanize_bytes(model.total_size)}")
    if model.scanning:
        progress = controller.scan_progress
        lines.append(
            f"Scanning: {progress.files.value} files, {progress.dirs.value} dirs, "
            f"{humanize_bytes(progress.bytes.value)}"
        )
    if model.status:
        lines.append(model.status)

    view = model.view
    if view is View.EXPORT:
        modal = model.export_modal
        lines.append("=== Export ===")
        lines.append(f"Format: {modal.format.value.upper()}")
        lines.append(f"Destination: {modal.destination}")
        lines.append(f"Preview: {modal.preview}")
        lines.append("Keys: tab cycle, j/k JSON/CSV, d set destination, enter export, esc cancel")
        return lines
    if view is View.SEARCH:
        lines.append(f"/{model.search_query}")
        lines.append(f"Results: {len(visible)}/{len(model.entries)}")
    if model.duplicates_mode:
        lines.extend(_duplicate_lines(controller))
        return lines
    if view is View.LARGE_FILES:
        large = filter_entries(model.large_files, model.search_query)
        if not large:
            lines.append("  No large files found")
        for entry in large[:LISTING_ROWS]:
            lines.append(f"   {humanize_bytes(entry.size):>10}  {entry.path}")
        return lines

    focus = controller.focus.load() if settings.projects_enabled else FocusList()
    for position, entry in enumerate(visible[model.offset:model.offset + LISTING_ROWS], start=model.offset):
        cursor = ">" if position == model.selected else " "
        mark = "*" if str(entry.path) in model.multi_selected else " "
        pin = " [pinned]" if controller.is_pinned(entry, focus) else ""
        kind = "/" if entry.is_dir else ""
        lines.append(f"{cursor}{mark} {humanize_bytes(entry.size):>10}  {entry.name}{kind}{pin}")
    lines.extend(_sidebar_lines(controller, focus))
    return lines


def _duplicate_lines(controller) -> list[str]:
    try:
        groups = controller.duplicate_groups()
    except IndexNotFoundError:
        groups = []
    except MoleError as exc:
        return [f"Duplicates unavailable: {exc}"]
    if not groups:
        return ["No duplicates found."]
    lines = [f"Duplicates ({len(groups)} groups)"]
    for group in groups:
        lines.append(
            f"  Group {group.fingerprint[:8]}... ({len(group.entries)} items, {humanize_bytes(group.total_size)})"
        )
        for entry in group.entries:
            lines.append(f"    {entry.name}  {humanize_bytes(entry.size)}")
    return lines


def _sidebar_lines(controller, focus: FocusList) -> list[str]:
    model = controller.model
    entry = model.selected_entry()
    if entry is None:
        return []
    lines = [
        "--- Selected ---",
        f"> {entry.name}",
        f"Path: {entry.path}",
        f"Size: {humanize_bytes(entry.size)}",
        f"Type: {'Directory' if entry.is_dir else 'File'}",
    ]
    if entry.last_access is not None:
        lines.append(f"Last Access: {entry.last_access:%Y-%m-%d %H:%M}")
    if controller.settings.projects_enabled:
        if controller.is_pinned(entry, focus):
            lines.append("[*] Pinned")
        try:
            rel = relative_key(model.path, entry.path)
            record = controller.index.load(model.path).find(rel)
        except (ValueError, MoleError):
            record = None
        if record is not None and record.fingerprint:
            lines.append(f"Fingerprint: {record.fingerprint[:8]}...")
    return lines
