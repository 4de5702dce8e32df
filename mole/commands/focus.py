"""Focus command - list, add or remove pinned paths."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from mole.app import MoleApp
from mole.commands.output import emit_output
from mole.errors import ValidationError


def run_focus(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    root = Path(args.root).resolve()
    focus = app.focus.load()
    json_output = getattr(args, "json", False)

    if args.add:
        if not (root / args.add).exists():
            raise ValidationError(f"Path does not exist: {root / args.add}")
        if not focus.is_pinned(args.add):
            focus = focus.with_pinned(args.add)
        app.focus.save(focus)
    elif args.remove:
        if not focus.is_pinned(args.remove):
            raise ValidationError(f"Not pinned: {args.remove}")
        focus = focus.without(args.remove)
        app.focus.save(focus)

    status = "updated" if (args.add or args.remove) else "listed"
    human = ["Pinned updated."] if status == "updated" else list(focus.pinned)
    emit_output(
        command="focus",
        payload={"status": status, "pinned": list(focus.pinned)},
        json_output=json_output,
        output_sink=output_sink,
        human_lines=human,
    )
    return 0
