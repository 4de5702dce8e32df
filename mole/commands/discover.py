"""Discover, duplicates and status commands over the project index."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from mole.app import MoleApp
from mole.commands.output import emit_output
from mole.errors import IOFailure, IndexNotFoundError
from mole.infrastructure.project_index import index_path
from mole.render import humanize_bytes


def _root(args: Namespace) -> Path:
    root = Path(args.root).resolve()
    if not root.is_dir():
        raise IOFailure(f"Root is not a directory: {root}")
    return root


def run_discover(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    """Index the projects below a root and write .mole/projects.json."""
    root = _root(args)
    index = app.index.discover(root)
    payload = {
        "root": index.root,
        "index_path": index_path(root),
        "projects": [record.to_dict() for record in index.projects],
    }
    human = [f"discover: root={root}", f"discover: projects={len(index.projects)}"]
    human.extend(
        f"  {record.path}  {humanize_bytes(record.size_bytes)}  {record.fingerprint[:8]}"
        for record in index.projects
    )
    human.append(f"discover: index={index_path(root)}")
    emit_output(
        command="discover",
        payload=payload,
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=human,
    )
    return 0


def run_duplicates(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    """Group the root's immediate entries by their saved fingerprints."""
    root = _root(args)
    json_output = getattr(args, "json", False)
    if not app.settings.projects_enabled:
        emit_output(
            command="duplicates",
            payload={"root": root, "enabled": False, "groups": []},
            json_output=json_output,
            output_sink=output_sink,
            human_lines=("Enable projects mode: export MO_FEATURE_PROJECTS=1",),
        )
        return 0
    entries = app.scanner.scan(root).entries
    groups = app.index.duplicates_for(root, entries)
    payload = {
        "root": root,
        "enabled": True,
        "groups": [
            {
                "fingerprint": group.fingerprint,
                "total_size": group.total_size,
                "paths": [entry.path for entry in group.entries],
            }
            for group in groups
        ],
    }
    human = [f"duplicates: groups={len(groups)}"]
    for group in groups:
        human.append(f"  {group.fingerprint[:8]}  {humanize_bytes(group.total_size)}")
        human.extend(f"    {entry.path}" for entry in group.entries)
    emit_output(
        command="duplicates",
        payload=payload,
        json_output=json_output,
        output_sink=output_sink,
        human_lines=human,
    )
    return 0


def run_status(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    root = _root(args)
    try:
        projects = len(app.index.load(root).projects)
    except IndexNotFoundError:
        projects = 0
    pinned = len(app.focus.load().pinned)
    payload = {
        "root": root,
        "indexed_projects": projects,
        "pinned": pinned,
        "index_path": index_path(root),
        "projects_enabled": app.settings.projects_enabled,
    }
    emit_output(
        command="status",
        payload=payload,
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(
            "mole status",
            f"  Root: {root}",
            f"  Indexed projects: {projects}",
            f"  Pinned: {pinned}",
            f"  Index: {index_path(root)}",
            f"  Projects mode: {'ON' if app.settings.projects_enabled else 'OFF'}",
        ),
    )
    return 0
