"""Services package."""

from pension_ledger.services.storage import (
    BackendUnavailable,
    EntryStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsEntryStorage,
    LocalSnapshotStorage,
    SnapshotStorageInterface,
    StorageError,
)

__all__ = [
    "BackendUnavailable",
    "EntryStorageInterface",
    "GoogleSheetsClient",
    "GoogleSheetsEntryStorage",
    "LocalSnapshotStorage",
    "SnapshotStorageInterface",
    "StorageError",
]
