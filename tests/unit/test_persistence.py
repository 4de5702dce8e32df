"""Unit tests for JSON persistence helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from mole.errors import CorruptStateError, IOFailure
from mole.infrastructure.persistence import DualSinkWriter, atomic_write, dump_json, read_json


def test_dump_json_is_indented_with_newline() -> None:
    assert dump_json({"a": 1}) == '{\n  "a": 1\n}\n'


def test_atomic_write_creates_parents(tmp_path: Path) -> None:
    path = tmp_path / "a" / "b" / "doc.json"
    atomic_write(path, "{}")
    assert path.read_text() == "{}"
    assert not path.with_name("doc.json.tmp").exists()


def test_read_json_missing(tmp_path: Path) -> None:
    assert read_json(tmp_path / "none.json") is None


def test_read_json_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text("nope")
    with pytest.raises(CorruptStateError):
        read_json(path)


def test_read_json_unreadable(tmp_path: Path) -> None:
    with pytest.raises(IOFailure):
        read_json(tmp_path)


class TestDualSinkWriter:
    """Test primary/mirror writes."""

    def test_writes_every_sink(self, tmp_path: Path):
        writer = DualSinkWriter(tmp_path / "p.json", (tmp_path / "m" / "m.json",))
        writer.write("x")
        assert (tmp_path / "p.json").read_text() == "x"
        assert (tmp_path / "m" / "m.json").read_text() == "x"

    def test_primary_failure_raises(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        writer = DualSinkWriter(blocker / "p.json", (tmp_path / "m.json",))
        with pytest.raises(IOFailure):
            writer.write("x")
        assert not (tmp_path / "m.json").exists()

    def test_mirror_failure_is_logged(self, tmp_path: Path, caplog):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        writer = DualSinkWriter(tmp_path / "p.json", (blocker / "m.json",))
        writer.write("x")
        assert (tmp_path / "p.json").read_text() == "x"
        assert "Mirror write" in caplog.text

    def test_remove_skips_missing(self, tmp_path: Path):
        (tmp_path / "p.json").write_text("x")
        writer = DualSinkWriter(tmp_path / "p.json", (tmp_path / "m.json",))
        assert writer.remove() == []
        assert not (tmp_path / "p.json").exists()
