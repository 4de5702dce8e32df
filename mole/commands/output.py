"""JSON envelope and human-line output shared by every CLI verb."""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Iterable

from mole.core.models import format_timestamp

SCHEMA_VERSION = "v1"


def _encode(value: Any) -> Any:
    """``json.dumps`` hook for the model types commands hand over as-is."""
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Cannot encode {type(value).__name__} in command output")


def emit_output(
    *,
    command: str,
    payload: dict,
    json_output: bool,
    output_sink=print,
    human_lines: Iterable[str] = (),
) -> None:
    """Print ``payload`` as a ``{schema_version, command, data}`` envelope, or ``human_lines``.

    JSON output is key-sorted and compact so repeated runs over the same state
    print identical bytes.
    """
    if not json_output:
        for line in human_lines:
            output_sink(line)
        return
    envelope = {"schema_version": SCHEMA_VERSION, "command": command, "data": payload}
    output_sink(json.dumps(envelope, sort_keys=True, separators=(",", ":"), default=_encode))
