"""Trash, restore and purge commands."""

from __future__ import annotations

from argparse import Namespace
from datetime import timedelta
from pathlib import Path

from mole.app import MoleApp
from mole.commands.output import emit_output
from mole.errors import ValidationError


def run_trash(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    """Move paths into a new trash root and record its manifest."""
    paths = [Path(p).absolute() for p in args.paths]
    missing = [str(p) for p in paths if not p.exists() and not p.is_symlink()]
    if missing:
        raise ValidationError(f"Path does not exist: {', '.join(missing)}")
    transaction = app.trash.move_to_trash(paths)
    app.trash.save_manifest(transaction)
    emit_output(
        command="trash",
        payload=transaction.to_dict(),
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(
            f"trash: moved={len(transaction)}",
            f"trash: root={transaction.trash_root}",
        ),
    )
    return 0


def run_trash_list(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    transactions = app.trash.list_transactions()
    human = [f"trash: transactions={len(transactions)}"]
    for txn in transactions:
        human.append(f"  {txn.trash_root}  items={len(txn)}")
        human.extend(f"    {item.original}" for item in txn.items)
    emit_output(
        command="trash-list",
        payload={"transactions": [txn.to_dict() for txn in transactions]},
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=human,
    )
    return 0


def run_restore(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    transaction = app.trash.load_manifest(Path(args.trash_root))
    restored = app.trash.restore(transaction)
    emit_output(
        command="restore",
        payload={"trash_root": transaction.trash_root, "restored": restored},
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(f"Restored {restored} item(s)",),
    )
    return 0


def run_purge(args: Namespace, *, app: MoleApp, output_sink=print) -> int:
    """Permanently delete trash roots older than the retention window."""
    days = args.days if args.days is not None else app.settings.trash_retention_days
    if days < 0:
        raise ValidationError(f"--days must not be negative: {days}")
    removed = app.trash.purge(timedelta(days=days))
    emit_output(
        command="purge",
        payload={"removed": removed, "older_than_days": days},
        json_output=getattr(args, "json", False),
        output_sink=output_sink,
        human_lines=(f"purge: removed={removed} older_than_days={days}",),
    )
    return 0
