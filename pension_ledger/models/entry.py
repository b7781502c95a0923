"""
Core Data Models for Pension Ledger

These models define the strict schemas for all ledger data.
They are designed to:
1. Enforce the entry invariants at runtime (positive amount, known kind)
2. Provide clear validation error messages
3. Be serializable for the local snapshot and the remote sheet

DESIGN DECISION: Amounts are always stored POSITIVE.
The sign comes from the entry kind and is applied only when
balances are derived. Balances themselves are never stored.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def new_entry_id() -> str:
    """Random, client-generated entry identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class EntryKind(str, Enum):
    """Whether an entry adds to or subtracts from the balance."""
    INCOME = "income"
    EXPENSE = "expense"

    @classmethod
    def parse(cls, value: "EntryKind | str") -> "EntryKind":
        """Accept any casing, e.g. the 'INCOME'/'EXPENSE' spellings of older snapshots."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as error:
            raise ValueError(f"Unsupported entry kind: {value}") from error

    @property
    def sign(self) -> int:
        return 1 if self is EntryKind.INCOME else -1


# =============================================================================
# LEDGER MODELS
# =============================================================================

class Entry(BaseModel):
    """
    One income or expense record.

    The id is assigned once at creation and never changes.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        default_factory=new_entry_id,
        min_length=1,
        description="Unique entry ID"
    )
    date: datetime.date = Field(
        ...,
        description="Calendar date of the entry"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the entry is about"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount, always positive"
    )
    kind: EntryKind = Field(
        ...,
        description="Income or expense"
    )

    @model_validator(mode='before')
    @classmethod
    def coerce_kind(cls, data):
        """Normalise the kind before enum validation."""
        if isinstance(data, dict) and isinstance(data.get("kind"), str):
            data = {**data, "kind": EntryKind.parse(data["kind"])}
        return data

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the kind."""
        return self.amount * self.kind.sign


class EntryUpdate(BaseModel):
    """
    Mutable fields of an entry.

    Every field is optional; only fields that are set are applied.
    The id is deliberately absent.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    date: Optional[datetime.date] = None
    description: Optional[str] = Field(default=None, min_length=1, max_length=200)
    amount: Optional[Decimal] = Field(default=None, gt=0)
    kind: Optional[EntryKind] = None

    def apply_to(self, entry: Entry) -> Entry:
        """Return a copy of `entry` with the set fields replaced."""
        changes = self.model_dump(exclude_unset=True, exclude_none=True)
        return entry.model_copy(update=changes)


class DerivedEntry(Entry):
    """
    An entry as shown in the chronological statement.

    running_balance is only valid for the view it was computed in.
    """

    running_balance: Decimal = Field(
        ...,
        description="Balance after applying this entry and all earlier ones"
    )


class Summary(BaseModel):
    """Aggregate totals over the whole ledger."""

    starting_balance: Decimal = Decimal("0")
    total_income: Decimal = Field(default=Decimal("0"), ge=0)
    total_expenses: Decimal = Field(default=Decimal("0"), ge=0)
    final_balance: Decimal = Decimal("0")


class Ledger(BaseModel):
    """
    The full set of entries plus the starting balance.

    This is also the shape of the local snapshot.
    """

    starting_balance: Decimal = Field(
        default=Decimal("0"),
        description="Balance before any entry"
    )
    entries: list[Entry] = Field(
        default_factory=list,
        description="Entries in insertion order"
    )

    @model_validator(mode='after')
    def validate_unique_ids(self) -> 'Ledger':
        """No two entries may share an id."""
        seen = set()
        for entry in self.entries:
            if entry.id in seen:
                raise ValueError(f"Duplicate entry id: {entry.id}")
            seen.add(entry.id)
        return self

    def find(self, entry_id: str) -> Optional[Entry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None

    @property
    def is_empty(self) -> bool:
        return not self.entries
