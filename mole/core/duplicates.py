"""Group live entries by the fingerprint recorded for their project."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .fingerprint import relative_key
from .models import DuplicateGroup, Entry, ProjectIndex


def group_duplicates(index: ProjectIndex, entries: Iterable[Entry], root: Path) -> list[DuplicateGroup]:
    """Build duplicate groups from the index and the current listing.

    Only fingerprints matched by two or more entries are reported. Groups are
    ordered by aggregate size (largest first), then fingerprint.
    """
    keyed: list[tuple[str, Entry]] = []
    for entry in entries:
        try:
            keyed.append((relative_key(root, entry.path), entry))
        except ValueError:
            continue

    by_fingerprint: dict[str, list[Entry]] = {}
    for record in index.projects:
        if not record.fingerprint:
            continue
        for rel, entry in keyed:
            if rel == record.path:
                by_fingerprint.setdefault(record.fingerprint, []).append(entry)

    groups = [
        DuplicateGroup(
            fingerprint=fingerprint,
            entries=tuple(members),
            total_size=sum(max(member.size, 0) for member in members),
        )
        for fingerprint, members in by_fingerprint.items()
        if len(members) >= 2
    ]
    groups.sort(key=lambda group: (-group.total_size, group.fingerprint))
    return groups
