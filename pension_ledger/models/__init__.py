"""
Data Models Package

This package contains all Pydantic models used in Pension Ledger.
All data flowing through the system must conform to these schemas.
"""

from pension_ledger.models.entry import (
    DerivedEntry,
    Entry,
    EntryKind,
    EntryUpdate,
    Ledger,
    Summary,
    new_entry_id,
)
from pension_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DerivedEntry",
    "Entry",
    "EntryKind",
    "EntryUpdate",
    "Ledger",
    "Summary",
    "new_entry_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
