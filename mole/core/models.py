"""Core records shared by the index, trash, focus and session components."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

PENDING_SIZE = -1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp, including ones with nanosecond fractions."""
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    if "." in text:
        head, _, rest = text.partition(".")
        digits = ""
        for char in rest:
            if not char.isdigit():
                break
            digits += char
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest[len(digits):]}"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Entry:
    """One filesystem object in the current listing."""

    name: str
    path: Path
    size: int = PENDING_SIZE
    is_dir: bool = False
    last_access: Optional[datetime] = None

    @property
    def pending(self) -> bool:
        return self.size < 0

    def resolved(self, size: int) -> Entry:
        """Return a copy with its pending size resolved."""
        if not self.pending:
            raise ValueError(f"Size of {self.path} already resolved")
        if size < 0:
            raise ValueError(f"Resolved size must be non-negative: {size}")
        return replace(self, size=size)

    @classmethod
    def from_path(cls, path: Path, size: int = PENDING_SIZE) -> Entry:
        try:
            st = path.lstat()
            last_access = datetime.fromtimestamp(st.st_atime, tz=timezone.utc)
        except OSError:
            last_access = None
        return cls(
            name=path.name,
            path=path,
            size=size,
            is_dir=path.is_dir() and not path.is_symlink(),
            last_access=last_access,
        )


@dataclass(frozen=True)
class ProjectRecord:
    """A detected project root, keyed by its path relative to the index root."""

    path: str
    kind: str = "standalone"
    pinned: bool = False
    latest_mtime: int = 0
    size_bytes: int = 0
    artifact_count: int = 0
    has_git: bool = False
    has_rust: bool = False
    has_node: bool = False
    has_python: bool = False
    fingerprint: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "kind": self.kind,
            "pinned": self.pinned,
            "latest_mtime": self.latest_mtime,
            "size_bytes": self.size_bytes,
            "artifact_count": self.artifact_count,
            "has_git": self.has_git,
            "has_rust": self.has_rust,
            "has_node": self.has_node,
            "has_python": self.has_python,
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectRecord:
        return cls(
            path=str(data["path"]),
            kind=str(data.get("kind") or "standalone"),
            pinned=bool(data.get("pinned", False)),
            latest_mtime=int(data.get("latest_mtime") or 0),
            size_bytes=int(data.get("size_bytes") or 0),
            artifact_count=int(data.get("artifact_count") or 0),
            has_git=bool(data.get("has_git", False)),
            has_rust=bool(data.get("has_rust", False)),
            has_node=bool(data.get("has_node", False)),
            has_python=bool(data.get("has_python", False)),
            fingerprint=str(data.get("fingerprint") or ""),
        )


@dataclass(frozen=True)
class ProjectIndex:
    """Persisted snapshot of one discovery run."""

    root: str
    generated_at: datetime
    projects: tuple[ProjectRecord, ...] = ()
    version: str = "0.1"

    def find(self, rel_path: str) -> Optional[ProjectRecord]:
        for record in self.projects:
            if record.path == rel_path:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "root": self.root,
            "generated_at": format_timestamp(self.generated_at),
            "projects": [record.to_dict() for record in self.projects],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectIndex:
        generated = data.get("generated_at")
        return cls(
            version=str(data.get("version") or "0.1"),
            root=str(data.get("root") or ""),
            generated_at=parse_timestamp(generated) if generated else datetime.fromtimestamp(0, tz=timezone.utc),
            projects=tuple(ProjectRecord.from_dict(item) for item in data.get("projects") or []),
        )


@dataclass(frozen=True)
class FocusList:
    """Pinned relative paths, kept in insertion order."""

    pinned: tuple[str, ...] = ()

    def is_pinned(self, rel_path: str) -> bool:
        return rel_path in self.pinned

    def with_pinned(self, rel_path: str) -> FocusList:
        return FocusList(self.pinned + (rel_path,))

    def without(self, rel_path: str) -> FocusList:
        """Drop the first matching entry only."""
        items = list(self.pinned)
        try:
            items.remove(rel_path)
        except ValueError:
            return self
        return FocusList(tuple(items))

    def to_dict(self) -> dict[str, Any]:
        return {"pinned": list(self.pinned)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FocusList:
        pinned = data.get("pinned") or []
        if not isinstance(pinned, list):
            raise ValueError("pinned must be a list")
        return cls(tuple(str(item) for item in pinned))


@dataclass(frozen=True)
class TrashItem:
    original: Path
    trashed: Path

    def to_dict(self) -> dict[str, str]:
        return {"original": str(self.original), "trashed": str(self.trashed)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrashItem:
        return cls(original=Path(data["original"]), trashed=Path(data["trashed"]))


@dataclass(frozen=True)
class TrashTransaction:
    """Record of one move-to-trash call, enough to reverse it once."""

    trash_root: Path
    items: tuple[TrashItem, ...] = ()
    created_at: datetime = field(default_factory=utc_now)

    def __len__(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict[str, Any]:
        return {
            "trash_root": str(self.trash_root),
            "created_at": format_timestamp(self.created_at),
            "items": [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrashTransaction:
        created = data.get("created_at")
        return cls(
            trash_root=Path(data["trash_root"]),
            items=tuple(TrashItem.from_dict(item) for item in data.get("items") or []),
            created_at=parse_timestamp(created) if created else utc_now(),
        )


SESSION_TTL = timedelta(hours=24)


@dataclass(frozen=True)
class Session:
    """Point-in-time UI snapshot."""

    path: str
    timestamp: datetime
    version: str = "1.0"
    search_query: str = ""
    search_mode: bool = False
    duplicates_mode: bool = False
    show_large_files: bool = False
    selected: int = 0
    offset: int = 0
    multi_selected: frozenset[str] = frozenset()

    def is_expired(self, now: datetime, ttl: timedelta = SESSION_TTL) -> bool:
        return now - self.timestamp > ttl

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "timestamp": format_timestamp(self.timestamp),
            "path": self.path,
        }
        # Optional fields are left out when empty.
        if self.search_query:
            data["search_query"] = self.search_query
        if self.search_mode:
            data["search_mode"] = True
        if self.duplicates_mode:
            data["duplicates_mode"] = True
        if self.show_large_files:
            data["show_large_files"] = True
        data["selected"] = self.selected
        data["offset"] = self.offset
        if self.multi_selected:
            data["multi_selected"] = {path: True for path in sorted(self.multi_selected)}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        raw_multi = data.get("multi_selected") or {}
        if isinstance(raw_multi, dict):
            multi = frozenset(str(k) for k, v in raw_multi.items() if v)
        else:
            multi = frozenset(str(item) for item in raw_multi)
        return cls(
            version=str(data.get("version") or "1.0"),
            timestamp=parse_timestamp(str(data["timestamp"])),
            path=str(data.get("path") or ""),
            search_query=str(data.get("search_query") or ""),
            search_mode=bool(data.get("search_mode", False)),
            duplicates_mode=bool(data.get("duplicates_mode", False)),
            show_large_files=bool(data.get("show_large_files", False)),
            selected=int(data.get("selected") or 0),
            offset=int(data.get("offset") or 0),
            multi_selected=multi,
        )


@dataclass(frozen=True)
class DuplicateGroup:
    fingerprint: str
    entries: tuple[Entry, ...]
    total_size: int
