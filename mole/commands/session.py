"""Session command - inspect or clear the saved UI session."""

from __future__ import annotations

from argparse import Namespace

from mole.app import MoleApp
from mole.commands.output import emit_output


def run_session(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    json_output = getattr(args, "json", False)
    if args.clear:
        app.sessions.clear()
        emit_output(
            command="session",
            payload={"cleared": True},
            json_output=json_output,
            output_sink=output_sink,
            human_lines=("Session cleared",),
        )
        return 0

    session = app.sessions.load()
    if session is None:
        emit_output(
            command="session",
            payload={"session": None},
            json_output=json_output,
            output_sink=output_sink,
            human_lines=("No saved session",),
        )
        return 0
    data = session.to_dict()
    emit_output(
        command="session",
        payload={"session": data},
        json_output=json_output,
        output_sink=output_sink,
        human_lines=[f"{key}: {value}" for key, value in data.items()],
    )
    return 0
