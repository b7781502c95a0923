"""
Audit Logger

DESIGN DECISION: Every ledger mutation and external call is logged.
This provides:
1. Traceability of user edits
2. Debugging capability for sync and advice failures
3. A visible trail of changes that only reached the local snapshot

The audit logger:
- Is async so it can sit on the same code paths as the storage calls
- Never raises (logging must not break the main flow)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from pension_ledger.models.audit import AuditEvent, AuditEventBuilder


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger.

    structlog renders the JSON line; stdlib only decides where it goes.
    """
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Events are written to the structured local log.
    """

    def __init__(self, logger_name: str = "pension_ledger.audit"):
        self._logger = structlog.get_logger(logger_name)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns False if the event could not be rendered.
        """
        log_dict = event.to_log_dict()

        try:
            if event.severity.value in ("error", "critical"):
                self._logger.error("audit_event", **log_dict)
            elif event.severity.value == "warning":
                self._logger.warning("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception as e:
            logging.getLogger(__name__).error(
                "Failed to write audit event %s: %s", event.event_id, e
            )
            return False

        return True

    async def log_entry_added(
        self,
        entry_id: str,
        kind: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a new entry."""
        event = AuditEventBuilder.entry_added(
            entry_id=entry_id,
            kind=kind,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_updated(
        self,
        entry_id: str,
        changed_fields: list[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an edit of an existing entry."""
        event = AuditEventBuilder.entry_updated(
            entry_id=entry_id,
            changed_fields=changed_fields,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_removed(
        self,
        entry_id: str,
        existed: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a deletion (including no-op deletions)."""
        event = AuditEventBuilder.entry_removed(
            entry_id=entry_id,
            existed=existed,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_rejected(
        self,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an entry that failed validation."""
        event = AuditEventBuilder.entry_rejected(
            issues=issues,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_starting_balance_changed(
        self,
        old_value: str,
        new_value: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.starting_balance_changed(
            old_value=old_value,
            new_value=new_value,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_loaded(
        self,
        source: str,
        entry_count: int,
    ) -> None:
        event = AuditEventBuilder.ledger_loaded(
            source=source,
            entry_count=entry_count,
        )
        await self.log(event)

    async def log_remote_sync_failed(
        self,
        operation: str,
        entry_id: Optional[str],
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a remote write that was kept local-only."""
        event = AuditEventBuilder.remote_sync_failed(
            operation=operation,
            entry_id=entry_id,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_local_save_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.local_save_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_advice_requested(
        self,
        request_id: int,
        entry_count: int,
    ) -> None:
        event = AuditEventBuilder.advice_requested(
            request_id=request_id,
            entry_count=entry_count,
        )
        await self.log(event)

    async def log_advice_failed(
        self,
        error_message: str,
    ) -> None:
        event = AuditEventBuilder.advice_failed(error_message=error_message)
        await self.log(event)

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        event = AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., saving an entry).
    Pass it through all subsequent operations.
    """
    return uuid4()
