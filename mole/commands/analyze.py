"""Analyze command - interactive browse/delete/undo session over a root."""

from __future__ import annotations

from argparse import Namespace
from pathlib import Path

from mole.app import MoleApp
from mole.core.messages import KeyPress
from mole.errors import IOFailure
from mole.render import render_lines

KEY_HELP = (
    "Keys: j/k move  space select  / search  d duplicates  l large  e export  "
    "p pin  x delete  ctrl+z undo  g discover  r rescan  q quit"
)


def run_analyze(
    args: Namespace,
    *,
    app: MoleApp,
    input_provider=input,
    output_sink=print,
) -> int:
    """Drive the controller from line-based input.

    Each input line holds whitespace-separated key names; the view is
    redrawn after every line once background work has settled.
    """
    root = Path(args.root).resolve()
    if not root.is_dir():
        raise IOFailure(f"Root is not a directory: {root}")

    loop = app.create_loop(root)
    controller = loop.controller
    try:
        loop.start()
        loop.run_until_idle()
        while not controller.model.quitting:
            for line in render_lines(controller):
                output_sink(line)
            output_sink(KEY_HELP)
            try:
                raw = input_provider("> ")
            except EOFError:
                loop.dispatch(KeyPress("q"))
                break
            for key in raw.split():
                loop.dispatch(KeyPress(key))
                loop.run_until_idle()
                if controller.model.quitting:
                    break
        loop.run_until_idle()
    finally:
        loop.close()
    if controller.model.status:
        output_sink(controller.model.status)
    return 0
