"""Case-insensitive substring filtering of listings."""

from __future__ import annotations

from typing import Iterable

from .models import Entry


def filter_entries(entries: Iterable[Entry], query: str) -> list[Entry]:
    entries = list(entries)
    if not query:
        return entries
    needle = query.lower()
    return [
        entry
        for entry in entries
        if needle in entry.name.lower() or needle in str(entry.path).lower()
    ]
