"""Listing export to JSON or CSV."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable

from mole.core.models import Entry
from mole.core.state import ExportFormat
from mole.errors import ValidationError

CSV_HEADER = ("name", "path", "size", "is_dir")


def _rows(entries: Iterable[Entry]) -> list[dict]:
    return [
        {"name": entry.name, "path": str(entry.path), "size": entry.size, "is_dir": entry.is_dir}
        for entry in entries
    ]


def export_entries(entries: Iterable[Entry], destination: Path, fmt: ExportFormat) -> Path:
    """Write ``entries`` to ``destination`` in ``fmt``.

    Raises:
        ValidationError: unsupported format
        OSError: the file cannot be written
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    rows = _rows(entries)
    if fmt is ExportFormat.JSON:
        destination.write_text(json.dumps(rows, indent=2) + "\n")
    elif fmt is ExportFormat.CSV:
        with destination.open("w", newline="") as handle:
            writer = csv.writer(handle)
            writer.writerow(CSV_HEADER)
            for row in rows:
                writer.writerow(
                    [row["name"], row["path"], row["size"], "true" if row["is_dir"] else "false"]
                )
    else:
        raise ValidationError(f"Unsupported export format: {fmt}")
    return destination
