"""AI Agents package."""

from pension_ledger.agents.advice_agent import (
    EMPTY_RESPONSE_MESSAGE,
    FAILURE_MESSAGE,
    NO_ENTRIES_MESSAGE,
    NOT_CONFIGURED_MESSAGE,
    AdviceAgent,
)

__all__ = [
    "AdviceAgent",
    "EMPTY_RESPONSE_MESSAGE",
    "FAILURE_MESSAGE",
    "NO_ENTRIES_MESSAGE",
    "NOT_CONFIGURED_MESSAGE",
]
