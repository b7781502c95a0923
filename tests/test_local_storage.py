"""Tests for the JSON snapshot storage."""

import json
from datetime import date
from decimal import Decimal

import pytest

from pension_ledger.ledger import LedgerStore
from pension_ledger.models.entry import EntryKind, Ledger
from pension_ledger.services.storage import LocalSnapshotStorage, StorageError

from conftest import make_entry


KEY = "controle_inss_data"


@pytest.fixture
def snapshot_path(tmp_path):
    return tmp_path / "data" / "ledger_snapshot.json"


@pytest.fixture
def storage(snapshot_path):
    return LocalSnapshotStorage(path=snapshot_path, key=KEY)


class TestLocalSnapshotStorage:

    @pytest.mark.asyncio
    async def test_missing_file_loads_nothing(self, storage):
        """Test that a first run has no snapshot."""
        assert await storage.load_snapshot() is None

    @pytest.mark.asyncio
    async def test_save_then_load(self, storage, snapshot_path):
        """Test that the whole ledger survives a save."""
        ledger = Ledger(
            starting_balance=Decimal("1000.00"),
            entries=[
                make_entry("a", date(2024, 1, 5), "500.00", "income", "Aposentadoria"),
                make_entry("b", date(2024, 1, 1), "200.00", "expense", "Farmácia"),
            ],
        )

        await storage.save_snapshot(ledger)

        assert snapshot_path.exists()
        assert KEY in json.loads(snapshot_path.read_text(encoding="utf-8"))
        assert await storage.load_snapshot() == ledger

    @pytest.mark.asyncio
    async def test_save_overwrites(self, storage):
        await storage.save_snapshot(Ledger(entries=[make_entry("a", date(2024, 1, 1), "1")]))
        await storage.save_snapshot(Ledger())

        loaded = await storage.load_snapshot()
        assert loaded.is_empty

    @pytest.mark.asyncio
    async def test_no_temp_file_left_behind(self, storage, snapshot_path):
        await storage.save_snapshot(Ledger())
        assert [p.name for p in snapshot_path.parent.iterdir()] == [snapshot_path.name]

    @pytest.mark.asyncio
    async def test_reads_legacy_format(self, storage, snapshot_path):
        """Test snapshots written as {initial, trans} with upper-case types."""
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text(json.dumps({
            KEY: {
                "initial": 1000,
                "trans": [
                    {
                        "id": "t1",
                        "date": "2024-01-05",
                        "description": "Aposentadoria",
                        "amount": 500,
                        "type": "INCOME",
                        "runningBalance": 1500,
                    },
                ],
            },
        }), encoding="utf-8")

        ledger = await storage.load_snapshot()

        assert ledger.starting_balance == Decimal("1000")
        assert ledger.entries[0].kind is EntryKind.INCOME
        assert ledger.entries[0].amount == Decimal("500")

    @pytest.mark.asyncio
    async def test_corrupt_file_is_treated_as_absent(self, storage, snapshot_path):
        """Test that unreadable data does not crash startup."""
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text("{not json", encoding="utf-8")

        assert await storage.load_snapshot() is None

    @pytest.mark.asyncio
    async def test_other_key_is_ignored(self, storage, snapshot_path):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text(json.dumps({"other_app": {"entries": []}}), encoding="utf-8")

        assert await storage.load_snapshot() is None

    @pytest.mark.asyncio
    async def test_unwritable_location_raises_storage_error(self, tmp_path):
        """Test that write failures surface as StorageError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        storage = LocalSnapshotStorage(path=blocker / "ledger.json", key=KEY)

        with pytest.raises(StorageError):
            await storage.save_snapshot(Ledger())


class TestPartiallyCorruptSnapshot:
    """One bad entry never costs the user the rest of the ledger."""

    @pytest.fixture
    def legacy_with_bad_row(self, snapshot_path):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text(json.dumps({
            KEY: {
                "initial": 1000,
                "trans": [
                    {"id": "ok", "date": "2024-01-05", "description": "Aposentadoria",
                     "amount": 500, "type": "INCOME"},
                    {"id": "blank", "date": "2024-01-06", "description": "   ",
                     "amount": 10, "type": "EXPENSE"},
                    {"id": "ok2", "date": "2024-01-07", "description": "Farmácia",
                     "amount": 20, "type": "EXPENSE"},
                ],
            },
        }), encoding="utf-8")
        return snapshot_path

    @pytest.mark.asyncio
    async def test_bad_entry_is_skipped_and_the_rest_kept(self, storage, legacy_with_bad_row):
        ledger = await storage.load_snapshot()

        assert ledger.starting_balance == Decimal("1000")
        assert [e.id for e in ledger.entries] == ["ok", "ok2"]

    @pytest.mark.asyncio
    async def test_original_file_is_backed_up(self, storage, legacy_with_bad_row):
        """The skipped row stays recoverable after the next save."""
        original = legacy_with_bad_row.read_text(encoding="utf-8")

        ledger = await storage.load_snapshot()
        await storage.save_snapshot(ledger)

        assert storage.backup_path.read_text(encoding="utf-8") == original

    @pytest.mark.asyncio
    async def test_store_keeps_good_data_after_next_mutation(self, storage, legacy_with_bad_row, validator):
        """Loading and then adding an entry must not drop the valid entries."""
        store = LedgerStore(local=storage, validator=validator)

        await store.load_initial()
        await store.add_entry("Luz", "80", "2024-01-10", "expense")

        reloaded = await storage.load_snapshot()
        assert reloaded.starting_balance == Decimal("1000")
        assert [e.id for e in reloaded.entries][:2] == ["ok", "ok2"]
        assert len(reloaded.entries) == 3

    @pytest.mark.asyncio
    async def test_duplicate_ids_keep_the_first(self, storage, snapshot_path):
        snapshot_path.parent.mkdir(parents=True)
        entry = make_entry("a", date(2024, 1, 1), "10").model_dump(mode="json")
        snapshot_path.write_text(json.dumps({
            KEY: {"starting_balance": "5", "entries": [entry, {**entry, "amount": "99"}]},
        }), encoding="utf-8")

        ledger = await storage.load_snapshot()

        assert [e.amount for e in ledger.entries] == [Decimal("10")]
        assert storage.backup_path.exists()

    @pytest.mark.asyncio
    async def test_unreadable_file_is_backed_up(self, storage, snapshot_path):
        snapshot_path.parent.mkdir(parents=True)
        snapshot_path.write_text("{not json", encoding="utf-8")

        assert await storage.load_snapshot() is None
        assert storage.backup_path.read_text(encoding="utf-8") == "{not json"

    @pytest.mark.asyncio
    async def test_clean_snapshot_makes_no_backup(self, storage):
        await storage.save_snapshot(Ledger(entries=[make_entry("a", date(2024, 1, 1), "1")]))

        await storage.load_snapshot()

        assert not storage.backup_path.exists()
