"""Error taxonomy and exit code mapping for CLI."""

from __future__ import annotations


class MoleError(Exception):
    """Base error for deterministic CLI exit codes."""

    exit_code: int = 1


class ValidationError(MoleError):
    """Invalid user input or command usage."""

    exit_code = 2


class RuntimeFailure(MoleError):
    """Unexpected runtime failure."""

    exit_code = 1


class IOFailure(MoleError):
    """Filesystem or I/O failure."""

    exit_code = 3


class CorruptStateError(IOFailure):
    """A persisted JSON document exists but cannot be parsed."""


class IndexNotFoundError(IOFailure):
    """No project index has been written for the requested root."""


class RestoreError(IOFailure):
    """A trash restore stopped part way through.

    ``restored`` counts the items that were moved back before the failure.
    """

    def __init__(self, message: str, restored: int = 0, total: int = 0) -> None:
        super().__init__(message)
        self.restored = restored
        self.total = total


class StartupError(MoleError):
    """The process cannot resolve its home or config directory."""

    exit_code = 4


def exit_code_for_exception(exc: BaseException) -> int:
    """Resolve a deterministic exit code for an exception."""
    if isinstance(exc, MoleError):
        return exc.exit_code
    if isinstance(exc, OSError):
        return IOFailure.exit_code
    return RuntimeFailure.exit_code
