"""JSON document helpers and the primary/mirror writer."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from mole.errors import CorruptStateError, IOFailure

logger = logging.getLogger(__name__)


def dump_json(payload: Any) -> str:
    return json.dumps(payload, indent=2) + "\n"


def atomic_write(path: Path, content: str) -> None:
    """Write-then-rename so readers never observe a half-written file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(content)
    os.replace(tmp, path)


def read_json(path: Path) -> Optional[Any]:
    """Return the parsed document, or None when the file does not exist.

    Raises:
        CorruptStateError: the file exists but is not valid JSON
        IOFailure: the file exists but cannot be read
    """
    try:
        content = path.read_text()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise IOFailure(f"Failed to read {path}: {exc}") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise CorruptStateError(f"Failed to parse {path}: {exc}") from exc


class DualSinkWriter:
    """One authoritative sink plus best-effort mirrors.

    A failure on the primary is raised; a failure on a mirror is logged and
    otherwise ignored.
    """

    def __init__(self, primary: Path, mirrors: Sequence[Path] = ()) -> None:
        self.primary = primary
        self.mirrors = tuple(mirrors)

    @property
    def paths(self) -> tuple[Path, ...]:
        return (self.primary,) + self.mirrors

    def write(self, content: str) -> None:
        try:
            atomic_write(self.primary, content)
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.primary, exc)
            raise IOFailure(f"Failed to write {self.primary}: {exc}") from exc
        for mirror in self.mirrors:
            try:
                atomic_write(mirror, content)
            except OSError as exc:
                logger.warning("Mirror write to %s failed: %s", mirror, exc)

    def remove(self) -> list[tuple[Path, OSError]]:
        """Delete every sink, returning the failures instead of stopping on them."""
        failures: list[tuple[Path, OSError]] = []
        for path in self.paths:
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Failed to remove %s: %s", path, exc)
                failures.append((path, exc))
        return failures
