"""Messages delivered to the controller by the event loop.

Background commands return one of these immutable values; they never touch
the model themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from .models import Entry, ProjectIndex, TrashTransaction


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class ScanCompleted:
    entries: tuple[Entry, ...]
    large_files: tuple[Entry, ...] = ()
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class DeleteCompleted:
    count: int
    transaction: Optional[TrashTransaction] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class UndoCompleted:
    restored: int
    total: int
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class DiscoveryCompleted:
    index: Optional[ProjectIndex] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class CommandFailed:
    """A background command raised instead of returning a message."""

    error: BaseException


Message = Union[KeyPress, ScanCompleted, DeleteCompleted, UndoCompleted, DiscoveryCompleted, CommandFailed]
Command = Callable[[], Message]
