"""
Local Snapshot Storage

The local fallback keeps the WHOLE ledger as one JSON blob, stored
under a fixed application key:

    {"controle_inss_data": {"starting_balance": "1000.00", "entries": [...]}}

It is read once at startup and rewritten after every mutation,
whether or not the remote backend is in use.

Older snapshots written as {"initial": ..., "trans": [{"type": "INCOME", ...}]}
are still readable.

Entries are validated one at a time: a malformed entry is skipped and
logged, never the whole ledger. Whenever anything is dropped, the file
as read is copied to `<name>.corrupt` before the next save replaces it.
"""

import json
import shutil
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional, Union

import structlog

from pension_ledger.models.entry import Entry, Ledger
from pension_ledger.services.storage.interface import (
    SnapshotStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)


def _coerce_legacy(blob: dict[str, Any]) -> dict[str, Any]:
    """Map the {initial, trans} snapshot shape onto Ledger fields."""
    if "entries" in blob or "starting_balance" in blob:
        return blob
    entries = []
    for item in blob.get("trans") or []:
        if isinstance(item, dict):
            item = dict(item)
            if "kind" not in item and "type" in item:
                item["kind"] = item.pop("type")
            item.pop("runningBalance", None)
        entries.append(item)
    return {
        "starting_balance": blob.get("initial") or 0,
        "entries": entries,
    }


class LocalSnapshotStorage(SnapshotStorageInterface):
    """JSON file implementation of the ledger snapshot."""

    def __init__(self, path: Union[str, Path], key: str):
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_path(self) -> Path:
        return self._path.with_suffix(self._path.suffix + ".corrupt")

    async def load_snapshot(self) -> Optional[Ledger]:
        """
        Read the snapshot.

        An unreadable file is backed up and treated as absent; malformed
        entries are skipped and the original file is backed up.
        """
        if not self._path.exists():
            return None

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(
                "snapshot_load_failed",
                path=str(self._path),
                error=str(e),
            )
            self._backup()
            return None

        blob = data.get(self._key) if isinstance(data, dict) else None
        if not isinstance(blob, dict):
            if blob is not None:
                logger.error("snapshot_blob_malformed", path=str(self._path))
                self._backup()
            return None

        ledger, dropped = self._parse_ledger(_coerce_legacy(blob))
        if dropped:
            self._backup()
        return ledger

    def _parse_ledger(self, blob: dict[str, Any]) -> tuple[Ledger, int]:
        """Build a Ledger from the good parts of a blob; returns (ledger, dropped)."""
        dropped = 0

        raw_balance = blob.get("starting_balance") or 0
        try:
            starting_balance = Decimal(str(raw_balance))
            if not starting_balance.is_finite():
                raise InvalidOperation(raw_balance)
        except (InvalidOperation, ValueError):
            logger.warning("snapshot_starting_balance_invalid", value=str(raw_balance))
            starting_balance = Decimal("0")
            dropped += 1

        raw_entries = blob.get("entries")
        if not isinstance(raw_entries, list):
            raw_entries = []

        entries = []
        seen = set()
        for item in raw_entries:
            try:
                entry = Entry.model_validate(item)
            except Exception as e:
                logger.warning("malformed_snapshot_entry_skipped", entry=item, error=str(e))
                dropped += 1
                continue
            if entry.id in seen:
                logger.warning("duplicate_snapshot_entry_skipped", entry_id=entry.id)
                dropped += 1
                continue
            seen.add(entry.id)
            entries.append(entry)

        return Ledger(starting_balance=starting_balance, entries=entries), dropped

    def _backup(self) -> None:
        """Keep a copy of the file as read; it will be overwritten on the next save."""
        try:
            shutil.copyfile(self._path, self.backup_path)
            logger.warning("snapshot_backed_up", backup=str(self.backup_path))
        except OSError as e:
            logger.error("snapshot_backup_failed", path=str(self._path), error=str(e))

    async def save_snapshot(self, ledger: Ledger) -> bool:
        """Replace the snapshot file."""
        payload = {self._key: ledger.model_dump(mode="json")}
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(
                json.dumps(payload, ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            tmp_path.replace(self._path)
            return True
        except OSError as e:
            raise StorageError(f"Failed to write snapshot {self._path}: {e}")
