"""Command-line interface for mole."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path


def _add_json(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mole",
        description="Inspect disk usage and reclaim space safely with undoable deletes",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="mole 0.3.0",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings path (default: ~/.config/mole/settings.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Interactive
    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Browse a directory interactively",
    )
    analyze_parser.add_argument("root", type=Path, help="Directory to analyze")

    # Projects
    discover_parser = subparsers.add_parser(
        "discover",
        help="Index project roots below a directory",
    )
    discover_parser.add_argument("root", type=Path, help="Root directory to index")
    _add_json(discover_parser)

    duplicates_parser = subparsers.add_parser(
        "duplicates",
        help="Show entries that share a fingerprint in the saved index",
    )
    duplicates_parser.add_argument("root", type=Path, help="Indexed root directory")
    _add_json(duplicates_parser)

    status_parser = subparsers.add_parser(
        "status",
        help="Summarize index and focus state for a root",
    )
    status_parser.add_argument("root", type=Path, help="Indexed root directory")
    _add_json(status_parser)

    focus_parser = subparsers.add_parser(
        "focus",
        help="List, add or remove pinned paths",
    )
    focus_parser.add_argument("root", type=Path, help="Root the pinned paths are relative to")
    focus_action = focus_parser.add_mutually_exclusive_group()
    focus_action.add_argument("--add", metavar="REL", help="Pin a relative path")
    focus_action.add_argument("--remove", metavar="REL", help="Unpin a relative path")
    focus_action.add_argument("--list", action="store_true", help="List pinned paths (default)")
    _add_json(focus_parser)

    # Trash
    trash_parser = subparsers.add_parser(
        "trash",
        help="Move paths to the trash",
    )
    trash_parser.add_argument("paths", nargs="+", type=Path, help="Paths to trash")
    _add_json(trash_parser)

    trash_list_parser = subparsers.add_parser(
        "trash-list",
        help="List recorded trash transactions, newest first",
    )
    _add_json(trash_list_parser)

    restore_parser = subparsers.add_parser(
        "restore",
        help="Restore every item of a trash transaction",
    )
    restore_parser.add_argument("trash_root", type=Path, help="Trash root directory")
    _add_json(restore_parser)

    purge_parser = subparsers.add_parser(
        "purge",
        help="Permanently delete trash older than the retention window",
    )
    purge_parser.add_argument(
        "--days",
        type=int,
        help="Retention window in days (default: trash_retention_days setting)",
    )
    _add_json(purge_parser)

    session_parser = subparsers.add_parser(
        "session",
        help="Show or clear the saved browsing session",
    )
    session_action = session_parser.add_mutually_exclusive_group()
    session_action.add_argument("--show", action="store_true", help="Show the session (default)")
    session_action.add_argument("--clear", action="store_true", help="Delete saved session files")
    _add_json(session_parser)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        # Import here to avoid slow startup
        from .app import MoleApp

        app = MoleApp.from_env(args.config)
        if args.command == "analyze":
            from .commands.analyze import run_analyze
            return run_analyze(args, app=app)
        elif args.command == "discover":
            from .commands.discover import run_discover
            return run_discover(args, app=app)
        elif args.command == "duplicates":
            from .commands.discover import run_duplicates
            return run_duplicates(args, app=app)
        elif args.command == "status":
            from .commands.discover import run_status
            return run_status(args, app=app)
        elif args.command == "focus":
            from .commands.focus import run_focus
            return run_focus(args, app=app)
        elif args.command == "trash":
            from .commands.trash import run_trash
            return run_trash(args, app=app)
        elif args.command == "trash-list":
            from .commands.trash import run_trash_list
            return run_trash_list(args, app=app)
        elif args.command == "restore":
            from .commands.trash import run_restore
            return run_restore(args, app=app)
        elif args.command == "purge":
            from .commands.trash import run_purge
            return run_purge(args, app=app)
        elif args.command == "session":
            from .commands.session import run_session
            return run_session(args, app=app)
        else:
            parser.print_help()
            return 1
    except Exception as exc:  # pragma: no cover - exercised in CLI tests
        from .errors import exit_code_for_exception

        print(str(exc), file=sys.stderr)
        return exit_code_for_exception(exc)


if __name__ == "__main__":
    sys.exit(main())
