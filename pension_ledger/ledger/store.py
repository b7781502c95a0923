"""
Ledger Store

The single owner of the session's ledger. The UI calls this API and
never touches the entries list directly.

FLOW for every mutation:
1. Validate input (ValidationError -> nothing changes)
2. Apply the change to the in-memory ledger
3. Best-effort remote write (failure -> warning notice, change kept)
4. Rewrite the local snapshot (always)

The in-memory ledger is the source of truth for the UI.
A failed remote write never rolls back a local change; it is
reported through `drain_notices()` and `last_sync` instead.
"""

from decimal import Decimal
from typing import Any, Optional, Union
from uuid import UUID

import structlog
from pydantic import BaseModel

from pension_ledger.audit import AuditLogger
from pension_ledger.ledger.processor import derive_view, summarize
from pension_ledger.models.entry import (
    DerivedEntry,
    Entry,
    EntryUpdate,
    Ledger,
    Summary,
)
from pension_ledger.services.storage import (
    EntryStorageInterface,
    SnapshotStorageInterface,
    StorageError,
)
from pension_ledger.validation import (
    EntryValidator,
    ValidationError,
    ValidationIssue,
)


logger = structlog.get_logger(__name__)

REMOTE_FAILED_NOTICE = (
    "Não foi possível sincronizar com a nuvem. "
    "A alteração foi salva apenas neste dispositivo."
)
REMOTE_LOAD_FAILED_NOTICE = (
    "Não foi possível carregar os dados da nuvem. "
    "Exibindo os dados salvos neste dispositivo."
)
LOCAL_FAILED_NOTICE = (
    "Não foi possível salvar os dados neste dispositivo. "
    "As alterações podem ser perdidas ao fechar o aplicativo."
)


class NotFoundError(Exception):
    """Operation referenced an entry id that is not in the ledger."""

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry not found: {entry_id}")


class SyncStatus(BaseModel):
    """Outcome of persisting one mutation."""

    operation: str
    remote_ok: Optional[bool] = None  # None: no remote backend
    local_ok: bool = True
    message: Optional[str] = None

    @property
    def synced(self) -> bool:
        return self.local_ok and self.remote_ok is not False


class LedgerStore:
    """
    Owns the ledger and its mutation API.

    Backends are injected once and never re-checked per call:
    `remote` is None when cloud sync is not configured.
    """

    def __init__(
        self,
        local: SnapshotStorageInterface,
        remote: Optional[EntryStorageInterface] = None,
        validator: Optional[EntryValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._local = local
        self._remote = remote
        self._validator = validator or EntryValidator()
        self._audit_logger = audit_logger
        self._ledger = Ledger()
        self._notices: list[str] = []
        self.last_sync: Optional[SyncStatus] = None
        self.last_warnings: list[ValidationIssue] = []
        self.loaded_from: Optional[str] = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def remote_enabled(self) -> bool:
        return self._remote is not None

    @property
    def ledger(self) -> Ledger:
        """A copy; mutate through the store API only."""
        return self._ledger.model_copy(deep=True)

    @property
    def entries(self) -> list[Entry]:
        return [entry.model_copy() for entry in self._ledger.entries]

    @property
    def starting_balance(self) -> Decimal:
        return self._ledger.starting_balance

    def get_entry(self, entry_id: str) -> Entry:
        entry = self._ledger.find(entry_id)
        if entry is None:
            raise NotFoundError(entry_id)
        return entry.model_copy()

    def view(self) -> list[DerivedEntry]:
        return derive_view(self._ledger)

    def summary(self) -> Summary:
        return summarize(self._ledger)

    def drain_notices(self) -> list[str]:
        """Return and clear pending user-facing sync notices."""
        notices, self._notices = self._notices, []
        return notices

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    async def load_initial(self) -> Ledger:
        """
        Load the ledger once at startup.

        Order: remote (if configured, reachable and holding entries),
        then the local snapshot, then an empty ledger with zero starting
        balance. The starting balance always comes from the local snapshot.

        An empty remote next to a non-empty snapshot (e.g. cloud sync
        switched on after local use) is seeded from the snapshot.
        """
        snapshot = await self._local.load_snapshot()
        starting_balance = snapshot.starting_balance if snapshot else Decimal("0")

        ledger = None
        source = "empty"

        if self._remote is not None:
            try:
                entries = await self._remote.list_entries()
                if entries or snapshot is None or snapshot.is_empty:
                    ledger = Ledger(starting_balance=starting_balance, entries=entries)
                    source = "remote"
                else:
                    await self._seed_remote(snapshot)
            except Exception as e:
                logger.warning("remote_load_failed", error=str(e))
                self._notices.append(REMOTE_LOAD_FAILED_NOTICE)
                if self._audit_logger:
                    await self._audit_logger.log_external_service_error(
                        service="google_sheets",
                        error_message=str(e),
                    )

        if ledger is None and snapshot is not None:
            ledger = snapshot
            source = "local"

        self._ledger = ledger or Ledger()
        self.loaded_from = source

        if self._audit_logger:
            await self._audit_logger.log_ledger_loaded(
                source=source,
                entry_count=len(self._ledger.entries),
            )

        return self.ledger

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def add_entry(
        self,
        description: Any,
        amount: Any,
        entry_date: Any,
        kind: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Entry:
        """
        Validate and append a new entry with a fresh id.

        Raises:
            ValidationError: if any field is invalid (ledger unchanged)
        """
        try:
            validated = self._validator.validate_new_entry(
                description=description,
                amount=amount,
                entry_date=entry_date,
                kind=kind,
            )
        except ValidationError as e:
            await self._log_rejection(e, correlation_id)
            raise

        entry = Entry(
            date=validated.entry_date,
            description=validated.description,
            amount=validated.amount,
            kind=validated.kind,
        )
        self._ledger.entries.append(entry)
        self.last_warnings = validated.warnings

        if self._audit_logger:
            await self._audit_logger.log_entry_added(
                entry_id=entry.id,
                kind=entry.kind.value,
                amount=str(entry.amount),
                correlation_id=correlation_id,
            )

        await self._persist("insert", entry=entry, correlation_id=correlation_id)
        return entry.model_copy()

    async def update_entry(
        self,
        entry_id: str,
        fields: Union[EntryUpdate, dict[str, Any]],
        correlation_id: Optional[UUID] = None,
    ) -> Entry:
        """
        Replace the mutable fields of an existing entry.

        Raises:
            NotFoundError: if no entry has this id
            ValidationError: if a field is invalid or not editable
        """
        index = self._index_of(entry_id)
        if index is None:
            raise NotFoundError(entry_id)

        if isinstance(fields, EntryUpdate):
            fields = fields.model_dump(exclude_unset=True)

        try:
            validated = self._validator.validate(**fields)
        except ValidationError as e:
            await self._log_rejection(e, correlation_id)
            raise

        changes = {
            "date": validated.entry_date,
            "description": validated.description,
            "amount": validated.amount,
            "kind": validated.kind,
        }
        update = EntryUpdate(**{k: v for k, v in changes.items() if v is not None})

        current = self._ledger.entries[index]
        updated = update.apply_to(current)
        changed_fields = [
            name for name in ("date", "description", "amount", "kind")
            if getattr(updated, name) != getattr(current, name)
        ]
        self._ledger.entries[index] = updated
        self.last_warnings = validated.warnings

        if self._audit_logger:
            await self._audit_logger.log_entry_updated(
                entry_id=entry_id,
                changed_fields=changed_fields,
                correlation_id=correlation_id,
            )

        await self._persist("update", entry=updated, correlation_id=correlation_id)
        return updated.model_copy()

    async def remove_entry(
        self,
        entry_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Remove an entry. Removing an absent id is a no-op, not an error."""
        index = self._index_of(entry_id)
        existed = index is not None
        if existed:
            del self._ledger.entries[index]

        if self._audit_logger:
            await self._audit_logger.log_entry_removed(
                entry_id=entry_id,
                existed=existed,
                correlation_id=correlation_id,
            )

        await self._persist("delete", entry_id=entry_id, correlation_id=correlation_id)

    async def set_starting_balance(
        self,
        value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        """
        Change the balance the running total starts from.

        Raises:
            ValidationError: if value is not a number
        """
        new_value = self._validator.validate_starting_balance(value)
        old_value = self._ledger.starting_balance
        if new_value == old_value:
            return old_value

        self._ledger.starting_balance = new_value

        if self._audit_logger:
            await self._audit_logger.log_starting_balance_changed(
                old_value=str(old_value),
                new_value=str(new_value),
                correlation_id=correlation_id,
            )

        await self._persist("starting_balance", correlation_id=correlation_id)
        return new_value

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _seed_remote(self, snapshot: Ledger) -> None:
        """Copy local entries into an empty remote; stops at the first failure."""
        logger.info("seeding_remote_from_snapshot", entry_count=len(snapshot.entries))
        for entry in snapshot.entries:
            try:
                await self._remote.insert_entry(entry)
            except Exception as e:
                logger.warning("remote_seed_failed", entry_id=entry.id, error=str(e))
                self._notices.append(REMOTE_FAILED_NOTICE)
                if self._audit_logger:
                    await self._audit_logger.log_remote_sync_failed(
                        operation="insert",
                        entry_id=entry.id,
                        error_message=str(e),
                    )
                return

    def _index_of(self, entry_id: str) -> Optional[int]:
        for idx, entry in enumerate(self._ledger.entries):
            if entry.id == entry_id:
                return idx
        return None

    async def _log_rejection(
        self,
        error: ValidationError,
        correlation_id: Optional[UUID],
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_entry_rejected(
                issues=error.to_dicts(),
                correlation_id=correlation_id,
            )

    async def _persist(
        self,
        operation: str,
        entry: Optional[Entry] = None,
        entry_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> SyncStatus:
        """
        Best-effort remote write, then the local snapshot.

        Never raises: failures become notices and audit warnings.
        """
        status = SyncStatus(operation=operation)

        if self._remote is not None and operation in ("insert", "update", "delete"):
            try:
                if operation == "insert":
                    await self._remote.insert_entry(entry)
                elif operation == "update":
                    await self._remote.update_entry(entry)
                else:
                    await self._remote.delete_entry(entry_id)
                status.remote_ok = True
            except Exception as e:
                status.remote_ok = False
                status.message = REMOTE_FAILED_NOTICE
                self._notices.append(REMOTE_FAILED_NOTICE)
                logger.warning("remote_sync_failed", operation=operation, error=str(e))
                if self._audit_logger:
                    await self._audit_logger.log_remote_sync_failed(
                        operation=operation,
                        entry_id=entry.id if entry else entry_id,
                        error_message=str(e),
                        correlation_id=correlation_id,
                    )

        try:
            await self._local.save_snapshot(self._ledger)
        except StorageError as e:
            status.local_ok = False
            status.message = LOCAL_FAILED_NOTICE
            self._notices.append(LOCAL_FAILED_NOTICE)
            logger.error("local_save_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_local_save_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )

        self.last_sync = status
        return status
