"""
Abstract Storage Interfaces

DESIGN DECISION: Persistence comes in two capability shapes:

1. EntryStorageInterface - a remote table of entries (one row per entry).
   Writes are per-entry: insert, update, delete.
2. SnapshotStorageInterface - a single local blob holding the whole ledger.
   Writes replace the blob.

The ledger store picks its backends ONCE at startup: the local snapshot
always, the remote table only when configured. Business logic never
checks configuration per call.
"""

from abc import ABC, abstractmethod
from typing import Optional

from pension_ledger.models.entry import Entry, Ledger


class EntryStorageInterface(ABC):
    """
    Abstract interface for remote entry storage.

    Any remote implementation (Google Sheets, a hosted database, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_entries(self) -> list[Entry]:
        """
        List all stored entries.

        Returns:
            Entries ordered by date ascending (stable for equal dates)

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def insert_entry(self, entry: Entry) -> bool:
        """
        Store a new entry.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def update_entry(self, entry: Entry) -> bool:
        """
        Replace the stored fields of an existing entry.

        Returns:
            True if updated successfully

        Raises:
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def delete_entry(self, entry_id: str) -> bool:
        """
        Delete an entry by ID.

        Returns:
            True if a row was deleted, False if it was already absent

        Raises:
            StorageError: If delete fails
        """
        pass


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for the local ledger snapshot.

    The snapshot is opaque to callers: they only load and save Ledgers.
    """

    @abstractmethod
    async def load_snapshot(self) -> Optional[Ledger]:
        """
        Read the stored ledger.

        Returns:
            The ledger, or None if nothing (readable) is stored
        """
        pass

    @abstractmethod
    async def save_snapshot(self, ledger: Ledger) -> bool:
        """
        Replace the stored ledger.

        Raises:
            StorageError: If the snapshot cannot be written
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class BackendUnavailable(StorageError):
    """Remote backend is unconfigured or could not be reached."""
    pass
