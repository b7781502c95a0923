"""
Main Orchestrator for Pension Ledger

This module wires the components together and defines the flows
the UI drives:
1. Ledger (load once -> mutate -> best-effort persist -> recompute)
2. Advice (summary -> AI tip, stale responses discarded)

DESIGN DECISION: Backends are chosen HERE, once, at startup.
The local snapshot is always used; Google Sheets only when both of
its settings are present. Nothing downstream re-checks configuration.
"""

from typing import Optional

import structlog
from pydantic import BaseModel

from pension_ledger.agents import AdviceAgent
from pension_ledger.audit import AuditLogger, configure_logging
from pension_ledger.config import get_settings
from pension_ledger.ledger import LedgerStore
from pension_ledger.services.storage import (
    EntryStorageInterface,
    GoogleSheetsClient,
    GoogleSheetsEntryStorage,
    LocalSnapshotStorage,
)


logger = structlog.get_logger(__name__)


class AdviceResult(BaseModel):
    """One answer from the advice flow."""

    request_id: int
    text: str
    stale: bool = False


class AdviceFlow:
    """
    Orchestrates advice requests.

    Requests may overlap (the user clicks again before the first answer
    arrives). Each request gets an increasing id; a response whose id is
    older than the newest COMPLETED response is marked stale and must
    not replace what the UI is showing.
    """

    def __init__(
        self,
        store: LedgerStore,
        agent: Optional[AdviceAgent] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._agent = agent or AdviceAgent(audit_logger=audit_logger)
        self._audit_logger = audit_logger
        self._issued = 0
        self._completed = 0
        self.latest: Optional[AdviceResult] = None

    @property
    def is_configured(self) -> bool:
        return self._agent.is_configured

    async def request_advice(self) -> AdviceResult:
        """Ask for a tip about the current ledger."""
        self._issued += 1
        request_id = self._issued

        entries = self._store.view()
        summary = self._store.summary()

        if self._audit_logger:
            await self._audit_logger.log_advice_requested(
                request_id=request_id,
                entry_count=len(entries),
            )

        text = await self._agent.request_advice(entries, summary)

        if request_id < self._completed:
            logger.info("stale_advice_discarded", request_id=request_id)
            return AdviceResult(request_id=request_id, text=text, stale=True)

        self._completed = request_id
        self.latest = AdviceResult(request_id=request_id, text=text)
        return self.latest


def create_remote_storage(use_storage: bool = True) -> Optional[EntryStorageInterface]:
    """Google Sheets storage if configured, else None (never raises)."""
    if not use_storage:
        return None

    sheets_settings = get_settings().google_sheets
    if not sheets_settings.is_configured:
        logger.info("remote_storage_not_configured")
        return None

    return GoogleSheetsEntryStorage(GoogleSheetsClient(sheets_settings))


def create_app_components(
    use_storage: bool = True,
) -> tuple[LedgerStore, AdviceFlow]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the Google Sheets backend when configured.
                    Set to False to run on the local snapshot only.

    Returns:
        (ledger_store, advice_flow)
    """
    app_settings = get_settings().app
    configure_logging(app_settings.log_level)

    audit_logger = AuditLogger()

    local_storage = LocalSnapshotStorage(
        path=app_settings.snapshot_path,
        key=app_settings.storage_key,
    )
    remote_storage = create_remote_storage(use_storage)

    store = LedgerStore(
        local=local_storage,
        remote=remote_storage,
        audit_logger=audit_logger,
    )

    advice_flow = AdviceFlow(
        store=store,
        agent=AdviceAgent(audit_logger=audit_logger),
        audit_logger=audit_logger,
    )

    return store, advice_flow
