"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets can hold the budget document when it
should live in the cloud:
1. No database setup required
2. Built-in backup (Google's infrastructure)
3. The owner can see that their data is there

The whole document is one row of the Documents worksheet:

    user_id | updated_at | chunk_1 | chunk_2 | ...

A cell holds at most 50,000 characters, so the JSON text is split into
fixed-size chunks across columns and joined again on load.

TRADEOFFS:
- Every save rewrites the full row (fine for a household budget)
- No transactions; the last save wins
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from homebudget.config import GoogleSheetsSettings, get_settings
from homebudget.ledger.hydration import strip_absent
from homebudget.services.storage.interface import (
    ConnectionError,
    DocumentStorageInterface,
    NotFoundError,
    StorageError,
)


DOCUMENT_COLUMNS = ["user_id", "updated_at", "document"]

# Below the 50,000 character cell limit
CHUNK_SIZE = 45_000

# Columns before the first JSON chunk
_PREFIX_COLUMNS = 2


def split_chunks(text: str, size: int = CHUNK_SIZE) -> list[str]:
    """Split text into cell-sized pieces. Empty text is one empty chunk."""
    return [text[i:i + size] for i in range(0, len(text), size)] or [""]


def column_letter(index: int) -> str:
    """1-based column index to A1 letters (1 -> A, 27 -> AA)."""
    letters = ""
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
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
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

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
                raise NotFoundError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_documents_sheet(self) -> gspread.Worksheet:
        """Get or create the Documents worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.documents_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.documents_sheet_name,
                rows=100,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        return sheet


class GoogleSheetsDocumentStorage(DocumentStorageInterface):
    """
    Google Sheets implementation of document storage.

    One row per user; the JSON document is spread over chunk columns.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def _find_row(rows: list[list[str]], user_id: str) -> Optional[int]:
        """1-based sheet row of a user's document, skipping the header."""
        for idx, row in enumerate(rows[1:], start=2):
            if row and row[0] == user_id:
                return idx
        return None

    async def load(self, user_id: str) -> Optional[dict[str, Any]]:
        """Load a user's document, or None if they have no row yet."""
        try:
            sheet = self._client.get_documents_sheet()
            rows = sheet.get_all_values()
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read documents sheet: {e}")

        idx = self._find_row(rows, user_id)
        if idx is None:
            return None

        text = "".join(rows[idx - 1][_PREFIX_COLUMNS:])
        if not text.strip():
            return None
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageError(f"Stored document for {user_id} is corrupt: {e}")
        if not isinstance(document, dict):
            raise StorageError(f"Stored document for {user_id} is not a JSON object")
        return document

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def save(self, user_id: str, document: dict[str, Any]) -> bool:
        """Write a user's document, replacing their existing row."""
        try:
            text = json.dumps(strip_absent(document), ensure_ascii=False, separators=(",", ":"))
            sheet = self._client.get_documents_sheet()
            rows = sheet.get_all_values()
            idx = self._find_row(rows, user_id)

            row = [
                user_id,
                datetime.now(timezone.utc).isoformat(),
                *split_chunks(text),
            ]

            if idx is None:
                if len(row) > sheet.col_count:
                    sheet.add_cols(len(row) - sheet.col_count)
                sheet.append_row(row, value_input_option="RAW")
                return True

            # Blank out chunk cells left over from a longer previous document
            previous_width = len(rows[idx - 1])
            if previous_width > len(row):
                row.extend([""] * (previous_width - len(row)))
            if len(row) > sheet.col_count:
                sheet.add_cols(len(row) - sheet.col_count)

            sheet.update(
                range_name=f"A{idx}:{column_letter(len(row))}{idx}",
                values=[row],
                value_input_option="RAW",
            )
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save document: {e}")
