"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage:
Google Sheets as the optional remote backend, a JSON file as the local snapshot.
"""

from pension_ledger.services.storage.interface import (
    BackendUnavailable,
    EntryStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from pension_ledger.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsEntryStorage,
)
from pension_ledger.services.storage.local import LocalSnapshotStorage

__all__ = [
    # Interfaces
    "EntryStorageInterface",
    "SnapshotStorageInterface",
    # Exceptions
    "BackendUnavailable",
    "StorageError",
    # Implementations
    "GoogleSheetsClient",
    "GoogleSheetsEntryStorage",
    "LocalSnapshotStorage",
]
