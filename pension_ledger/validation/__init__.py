"""Input validation package."""

from pension_ledger.validation.validator import (
    EntryValidator,
    ValidatedEntryInput,
    ValidationError,
    ValidationIssue,
)

__all__ = [
    "EntryValidator",
    "ValidatedEntryInput",
    "ValidationError",
    "ValidationIssue",
]
