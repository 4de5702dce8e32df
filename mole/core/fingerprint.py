"""Project markers, artifact heuristics and metadata fingerprints."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from pathlib import Path

SKIP_DIRS = frozenset(
    {
        ".git",
        "node_modules",
        "target",
        ".venv",
        "venv",
        ".next",
        "build",
        "dist",
        "__pycache__",
        "Library",
        "Applications",
        ".Trash",
        ".mole",
    }
)

RUST_MARKERS = frozenset({"Cargo.toml"})
NODE_MARKERS = frozenset({"package.json"})
PYTHON_MARKERS = frozenset({"pyproject.toml", "pytest.ini"})

ARTIFACT_KEYWORDS = ("readme", "export", "plan")


@dataclass(frozen=True)
class Markers:
    has_git: bool = False
    has_rust: bool = False
    has_node: bool = False
    has_python: bool = False

    @property
    def is_project(self) -> bool:
        return self.has_git or self.has_rust or self.has_node or self.has_python


@dataclass(frozen=True)
class TreeStats:
    size_bytes: int = 0
    latest_mtime: int = 0
    artifact_count: int = 0


def detect_markers(directory: Path) -> Markers:
    """Inspect the immediate children of ``directory`` for project markers."""
    has_git = has_rust = has_node = has_python = False
    try:
        with os.scandir(directory) as it:
            for child in it:
                try:
                    is_dir = child.is_dir(follow_symlinks=False)
                except OSError:
                    continue
                if is_dir:
                    if child.name == ".git":
                        has_git = True
                    continue
                if child.name in RUST_MARKERS:
                    has_rust = True
                elif child.name in NODE_MARKERS:
                    has_node = True
                elif child.name in PYTHON_MARKERS:
                    has_python = True
    except OSError:
        return Markers()
    return Markers(has_git=has_git, has_rust=has_rust, has_node=has_node, has_python=has_python)


def is_artifact_name(name: str) -> bool:
    lowered = name.lower()
    return any(keyword in lowered for keyword in ARTIFACT_KEYWORDS)


def measure_tree(directory: Path) -> TreeStats:
    """Total size, latest mtime and artifact count over every file below ``directory``."""
    total = 0
    latest = 0
    artifacts = 0
    for dirpath, dirnames, filenames in os.walk(directory, followlinks=False):
        dirnames.sort()
        for name in filenames:
            try:
                st = os.lstat(os.path.join(dirpath, name))
            except OSError:
                continue
            total += st.st_size
            mtime = int(st.st_mtime)
            if mtime > latest:
                latest = mtime
            if is_artifact_name(name):
                artifacts += 1
    return TreeStats(size_bytes=total, latest_mtime=latest, artifact_count=artifacts)


def hash_fingerprint(rel_path: str, size_bytes: int, latest_mtime: int) -> str:
    """Metadata digest; two trees with equal path, size and mtime collide."""
    digest = hashlib.sha256()
    digest.update(rel_path.encode("utf-8"))
    digest.update(f":{size_bytes}:{latest_mtime}".encode("ascii"))
    return digest.hexdigest()


def relative_key(root: Path, path: Path) -> str:
    """Root-relative POSIX path used to match entries against the index.

    Raises ValueError when ``path`` is not below ``root``.
    """
    rel = Path(os.path.abspath(path)).relative_to(Path(os.path.abspath(root)))
    return rel.as_posix()
