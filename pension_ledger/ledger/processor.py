"""
Balance Processor

DESIGN DECISION: Balances are DERIVED, never stored.
Both functions here are pure projections over a Ledger:
they never mutate it and give identical output for identical input.

derive_view:
    Stable sort by date (same-day entries keep insertion order),
    then fold from the starting balance, attaching the running
    total to each entry.

summarize:
    Order-independent totals. The final balance always equals the
    last running balance of derive_view (or the starting balance
    when there are no entries).
"""

from decimal import Decimal
from typing import Iterable

from pension_ledger.models.entry import (
    DerivedEntry,
    Entry,
    EntryKind,
    Ledger,
    Summary,
)


def sort_chronologically(entries: Iterable[Entry]) -> list[Entry]:
    """Ascending by date; `sorted` is stable so ties keep their order."""
    return sorted(entries, key=lambda entry: entry.date)


def derive_view(ledger: Ledger) -> list[DerivedEntry]:
    """Chronological statement with a running balance per entry."""
    current = ledger.starting_balance
    view = []
    for entry in sort_chronologically(ledger.entries):
        current = current + entry.signed_amount
        view.append(DerivedEntry(**entry.model_dump(), running_balance=current))
    return view


def summarize(ledger: Ledger) -> Summary:
    """Totals over the whole ledger, independent of ordering."""
    total_income = sum(
        (e.amount for e in ledger.entries if e.kind is EntryKind.INCOME),
        Decimal("0"),
    )
    total_expenses = sum(
        (e.amount for e in ledger.entries if e.kind is EntryKind.EXPENSE),
        Decimal("0"),
    )
    return Summary(
        starting_balance=ledger.starting_balance,
        total_income=total_income,
        total_expenses=total_expenses,
        final_balance=ledger.starting_balance + total_income - total_expenses,
    )


def recent_entries(ledger: Ledger, limit: int = 5) -> list[DerivedEntry]:
    """The last `limit` entries of the chronological view."""
    if limit <= 0:
        return []
    return derive_view(ledger)[-limit:]
