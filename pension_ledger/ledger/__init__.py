"""Ledger package: balance derivation and the entry store."""

from pension_ledger.ledger.processor import (
    derive_view,
    recent_entries,
    sort_chronologically,
    summarize,
)
from pension_ledger.ledger.store import (
    LedgerStore,
    NotFoundError,
    SyncStatus,
)

__all__ = [
    "LedgerStore",
    "NotFoundError",
    "SyncStatus",
    "derive_view",
    "recent_entries",
    "sort_chronologically",
    "summarize",
]
