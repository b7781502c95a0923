"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the optional cloud backend because:
1. Users (and their families) can view the ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- Not suitable for high-volume data (a personal ledger is tiny)
- No transactions (the local snapshot stays authoritative)
- Limited query capabilities (we sort in Python)

Only two settings switch it on: the service account credentials path
and the spreadsheet ID. Without both, the app never builds this class.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pension_ledger.config import get_settings
from pension_ledger.config.settings import GoogleSheetsSettings
from pension_ledger.models.entry import Entry, EntryKind
from pension_ledger.services.storage.interface import (
    BackendUnavailable,
    EntryStorageInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

# Column mappings for the entries sheet
ENTRY_COLUMNS = [
    "id",
    "date",
    "description",
    "amount",
    "kind",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._connect_error: Optional[str] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def is_configured(self) -> bool:
        return self._settings.is_configured

    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        A credentials failure is permanent for this session: it is
        remembered and raised again without touching the file.
        """
        if not self.is_configured:
            raise BackendUnavailable("Google Sheets is not configured")

        if self._connect_error is not None:
            raise BackendUnavailable(self._connect_error)

        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                self._connect_error = (
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
                raise BackendUnavailable(self._connect_error)
            except Exception as e:
                self._connect_error = f"Failed to connect to Google Sheets: {e}"
                raise BackendUnavailable(self._connect_error)

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise BackendUnavailable(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_entries_sheet(self) -> gspread.Worksheet:
        """Get or create the entries worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.entries_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.entries_sheet_name,
                rows=1000,
                cols=len(ENTRY_COLUMNS),
            )
            sheet.append_row(ENTRY_COLUMNS)
        return sheet


class GoogleSheetsEntryStorage(EntryStorageInterface):
    """
    Google Sheets implementation of remote entry storage.

    Entries are stored as rows in a worksheet with one entry per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _entry_to_row(entry: Entry) -> list:
        """Convert an Entry to a spreadsheet row."""
        return [
            entry.id,
            entry.date.isoformat(),
            entry.description,
            str(entry.amount),
            entry.kind.value,
        ]

    @staticmethod
    def _row_to_entry(row: list) -> Entry:
        """Convert a spreadsheet row to an Entry."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return Entry(
            id=safe_get(0),
            date=date.fromisoformat(safe_get(1)),
            description=safe_get(2),
            amount=Decimal(safe_get(3)),
            kind=EntryKind.parse(safe_get(4)),
        )

    @staticmethod
    def _find_row_index(all_rows: list[list], entry_id: str) -> Optional[int]:
        """1-based sheet row of the entry (row 1 is the header)."""
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == entry_id:
                return idx
        return None

    async def list_entries(self) -> list[Entry]:
        """List entries ordered by date ascending."""
        try:
            sheet = self._client.get_entries_sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list entries: {e}")

        entries = []
        seen = set()
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            if row[0] in seen:
                logger.warning("duplicate_sheet_row_skipped", entry_id=row[0])
                continue
            try:
                entry = self._row_to_entry(row)
            except Exception as e:
                logger.warning("malformed_sheet_row_skipped", row=row, error=str(e))
                continue
            seen.add(entry.id)
            entries.append(entry)

        entries.sort(key=lambda e: e.date)
        return entries

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(BackendUnavailable),
        reraise=True,
    )
    async def insert_entry(self, entry: Entry) -> bool:
        """Append an entry row."""
        try:
            sheet = self._client.get_entries_sheet()
            sheet.append_row(self._entry_to_row(entry), value_input_option="RAW")
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save entry: {e}")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(BackendUnavailable),
        reraise=True,
    )
    async def update_entry(self, entry: Entry) -> bool:
        """
        Rewrite an entry row.

        A row missing remotely (e.g. its insert failed earlier) is
        appended, so the sheet catches up with the local ledger.
        """
        try:
            sheet = self._client.get_entries_sheet()
            all_rows = sheet.get_all_values()
            idx = self._find_row_index(all_rows, entry.id)
            row = self._entry_to_row(entry)

            if idx is None:
                logger.info("sheet_row_missing_appending", entry_id=entry.id)
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(
                    range_name=f"A{idx}:E{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update entry: {e}")

    async def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry row; False if it was already absent."""
        try:
            sheet = self._client.get_entries_sheet()
            idx = self._find_row_index(sheet.get_all_values(), entry_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete entry: {e}")
