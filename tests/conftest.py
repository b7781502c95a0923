"""
Shared fixtures.

No test talks to Google Sheets or Gemini: remote storage is replaced
by in-memory fakes and the snapshot by either a fake or tmp_path.
"""

from datetime import date
from typing import Optional

import pytest

from pension_ledger.config import get_settings
from pension_ledger.ledger import LedgerStore
from pension_ledger.models.entry import Entry, Ledger
from pension_ledger.services.storage import (
    EntryStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from pension_ledger.validation import EntryValidator


TODAY = date(2024, 6, 15)


class FakeRemoteStorage(EntryStorageInterface):
    """In-memory remote backend that can be told to fail."""

    def __init__(self, entries: Optional[list[Entry]] = None):
        self.rows: dict[str, Entry] = {e.id: e for e in entries or []}
        self.fail_reads = False
        self.fail_writes = False
        self.calls: list[tuple[str, str]] = []

    async def list_entries(self) -> list[Entry]:
        if self.fail_reads:
            raise StorageError("remote unreachable")
        return sorted(self.rows.values(), key=lambda e: e.date)

    async def insert_entry(self, entry: Entry) -> bool:
        self.calls.append(("insert", entry.id))
        if self.fail_writes:
            raise StorageError("remote unreachable")
        self.rows[entry.id] = entry
        return True

    async def update_entry(self, entry: Entry) -> bool:
        self.calls.append(("update", entry.id))
        if self.fail_writes:
            raise StorageError("remote unreachable")
        self.rows[entry.id] = entry
        return True

    async def delete_entry(self, entry_id: str) -> bool:
        self.calls.append(("delete", entry_id))
        if self.fail_writes:
            raise StorageError("remote unreachable")
        return self.rows.pop(entry_id, None) is not None


class FakeSnapshotStorage(SnapshotStorageInterface):
    """Keeps the last saved ledger in memory."""

    def __init__(self, ledger: Optional[Ledger] = None):
        self.saved: Optional[Ledger] = ledger
        self.save_count = 0
        self.fail_writes = False

    async def load_snapshot(self) -> Optional[Ledger]:
        return self.saved.model_copy(deep=True) if self.saved else None

    async def save_snapshot(self, ledger: Ledger) -> bool:
        if self.fail_writes:
            raise StorageError("disk full")
        self.saved = ledger.model_copy(deep=True)
        self.save_count += 1
        return True


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Tests never pick up real credentials from the environment."""
    for name in (
        "GEMINI_API_KEY",
        "GOOGLE_SHEETS_CREDENTIALS_PATH",
        "GOOGLE_SHEETS_SPREADSHEET_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def validator():
    return EntryValidator(today=TODAY)


@pytest.fixture
def local_storage():
    return FakeSnapshotStorage()


@pytest.fixture
def remote_storage():
    return FakeRemoteStorage()


@pytest.fixture
def store(local_storage, validator):
    """Store with only the local snapshot (no cloud sync)."""
    return LedgerStore(local=local_storage, validator=validator)


@pytest.fixture
def synced_store(local_storage, remote_storage, validator):
    """Store with both backends."""
    return LedgerStore(local=local_storage, remote=remote_storage, validator=validator)


def make_entry(
    entry_id: str,
    day: date,
    amount: str,
    kind: str = "income",
    description: str = "Entry",
) -> Entry:
    return Entry(id=entry_id, date=day, description=description, amount=amount, kind=kind)
