"""
Rename-based trash with single-shot restore.

Deleting moves paths into a private, timestamp-named trash root; restoring
renames them back. Both directions are plain renames, so they are fast for
large trees and preserve metadata, but they fail across filesystem
boundaries.
"""
from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional, Sequence

from mole.core.models import TrashItem, TrashTransaction, utc_now
from mole.errors import CorruptStateError, RestoreError, ValidationError

from .persistence import atomic_write, dump_json, read_json

logger = logging.getLogger(__name__)

MANIFEST_NAME = "transaction.json"
_ROOT_FORMAT = "%Y%m%dT%H%M%S"


def trash_root_name(moment: datetime) -> str:
    """Local-time directory name with millisecond precision."""
    return moment.strftime(_ROOT_FORMAT) + f".{moment.microsecond // 1000:03d}"


def parse_trash_root_name(name: str) -> Optional[datetime]:
    stamp = name.split("-", 1)[0]
    try:
        base, _, millis = stamp.partition(".")
        parsed = datetime.strptime(base, _ROOT_FORMAT)
        return parsed.replace(microsecond=int(millis or 0) * 1000)
    except ValueError:
        return None


class TrashVault:
    """Moves paths into trash roots under ``trash_dir`` and restores them."""

    def __init__(
        self,
        trash_dir: Path,
        now_fn: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.trash_dir = trash_dir
        self._now_fn = now_fn or datetime.now

    def _create_root(self) -> Path:
        self.trash_dir.mkdir(parents=True, exist_ok=True)
        name = trash_root_name(self._now_fn())
        candidate = self.trash_dir / name
        suffix = 0
        while True:
            try:
                candidate.mkdir()
                return candidate
            except FileExistsError:
                suffix += 1
                candidate = self.trash_dir / f"{name}-{suffix}"

    def move_to_trash(self, paths: Sequence[Path]) -> TrashTransaction:
        """
        Rename every path into a fresh trash root, in input order.

        Args:
            paths: Absolute paths to trash (at least one)

        Returns:
            The transaction needed to restore them

        Raises:
            ValidationError: no paths were given
            OSError: a rename failed; items moved earlier in this call stay
                in the trash root
        """
        if not paths:
            raise ValidationError("No paths to trash")

        root = self._create_root()
        items: list[TrashItem] = []
        for index, path in enumerate(paths):
            source = Path(path)
            target = root / f"{index}_{source.name}"
            try:
                os.rename(source, target)
            except OSError as exc:
                logger.error("Failed to move %s to trash: %s", source, exc)
                _remove_path(target)
                if items:
                    logger.warning(
                        "Trash root %s keeps %d item(s) moved before the failure: %s",
                        root,
                        len(items),
                        ", ".join(str(item.original) for item in items),
                    )
                raise
            logger.debug("Trashed %s -> %s", source, target)
            items.append(TrashItem(original=source, trashed=target))

        return TrashTransaction(trash_root=root, items=tuple(items), created_at=utc_now())

    def restore(self, transaction: TrashTransaction) -> int:
        """
        Rename trashed items back to their original locations.

        Items already back in place (trashed copy gone, original present) are
        counted as restored, so a transaction that stopped part way can be
        restored again from its manifest.

        Returns:
            Number of items restored

        Raises:
            RestoreError: a rename failed; earlier items stay restored and the
                rest stay in trash
        """
        total = len(transaction.items)
        restored = 0
        for item in transaction.items:
            if not os.path.lexists(item.trashed) and os.path.lexists(item.original):
                logger.debug("Already restored %s", item.original)
                restored += 1
                continue
            try:
                item.original.parent.mkdir(parents=True, exist_ok=True)
                if os.path.lexists(item.original):
                    raise FileExistsError(f"Refusing to overwrite existing path: {item.original}")
                os.rename(item.trashed, item.original)
            except OSError as exc:
                logger.error("Failed to restore %s: %s", item.original, exc)
                raise RestoreError(
                    f"Restore stopped at {item.original}: {exc}",
                    restored=restored,
                    total=total,
                ) from exc
            logger.debug("Restored %s", item.original)
            restored += 1

        try:
            shutil.rmtree(transaction.trash_root)
        except OSError as exc:
            logger.warning("Failed to remove trash root %s: %s", transaction.trash_root, exc)
        return restored

    def save_manifest(self, transaction: TrashTransaction) -> Path:
        """Persist the transaction beside its items so it survives a restart."""
        path = transaction.trash_root / MANIFEST_NAME
        atomic_write(path, dump_json(transaction.to_dict()))
        return path

    def load_manifest(self, trash_root: Path) -> TrashTransaction:
        path = trash_root / MANIFEST_NAME
        data = read_json(path)
        if data is None:
            raise ValidationError(f"No trash manifest at {path}")
        try:
            return TrashTransaction.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptStateError(f"Invalid trash manifest {path}: {exc}") from exc

    def list_transactions(self) -> list[TrashTransaction]:
        """Transactions with a manifest, newest first."""
        if not self.trash_dir.exists():
            return []
        transactions = [
            self.load_manifest(child)
            for child in self.trash_dir.iterdir()
            if child.is_dir() and (child / MANIFEST_NAME).exists()
        ]
        transactions.sort(key=lambda txn: txn.created_at, reverse=True)
        return transactions

    def purge(self, older_than: timedelta) -> int:
        """Permanently delete trash roots whose timestamp name is older than ``older_than``."""
        if not self.trash_dir.exists():
            return 0
        cutoff = self._now_fn() - older_than
        removed = 0
        for child in sorted(self.trash_dir.iterdir()):
            if not child.is_dir():
                continue
            stamp = parse_trash_root_name(child.name)
            if stamp is None or stamp >= cutoff:
                continue
            try:
                shutil.rmtree(child)
            except OSError as exc:
                logger.warning("Failed to purge %s: %s", child, exc)
                continue
            logger.info("Purged trash root %s", child)
            removed += 1
        return removed


def _remove_path(path: Path) -> None:
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        elif os.path.lexists(path):
            path.unlink()
    except OSError as exc:
        logger.warning("Failed to clean up partial trash target %s: %s", path, exc)
