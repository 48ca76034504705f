"""
Google Sheets Key-Value Backend

DESIGN DECISION: Google Sheets can hold the whole TrackIt namespace as
a two-column worksheet (key, value) because:
1. Users can inspect their data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

TRADEOFFS:
- One cell holds at most 50,000 characters, so a very large dataset
  cannot be stored here (we fail loudly rather than truncate)
- No transactions; every write is a separate API call
- Lookups scan the sheet (fine for a handful of users)
"""

from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from trackit.config import GoogleSheetsSettings, get_settings
from trackit.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    StorageError,
)


STORE_COLUMNS = ["key", "value"]

# Google Sheets hard limit per cell
MAX_CELL_CHARS = 50000


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
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_store_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.store_sheet_name)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=self._settings.store_sheet_name,
                rows=1000,
                cols=len(STORE_COLUMNS),
            )
            sheet.append_row(STORE_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStore(KeyValueStore):
    """
    Google Sheets implementation of the key-value store.

    Row 1 is the header; each following row is one (key, value) pair.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rows(self) -> list[list[str]]:
        """All data rows (header excluded)."""
        sheet = self._client.get_store_sheet()
        return sheet.get_all_values()[1:]

    def _find_row_index(self, key: str) -> Optional[int]:
        """1-based sheet row of `key`, or None."""
        for idx, row in enumerate(self._rows(), start=2):  # Row 1 is header
            if row and row[0] == key:
                return idx
        return None

    def get(self, key: str) -> Optional[str]:
        try:
            for row in self._rows():
                if row and row[0] == key:
                    return row[1] if len(row) > 1 else ""
            return None
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read key {key}: {e}")

    def set(self, key: str, value: str) -> None:
        if len(value) > MAX_CELL_CHARS:
            raise StorageError(
                f"Value for {key} is {len(value)} characters; "
                f"Google Sheets cells hold at most {MAX_CELL_CHARS}"
            )
        self._write(key, value)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write(self, key: str, value: str) -> None:
        try:
            sheet = self._client.get_store_sheet()
            idx = self._find_row_index(key)
            if idx is None:
                sheet.append_row([key, value], value_input_option="RAW")
            else:
                sheet.update_cell(idx, 2, value)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write key {key}: {e}")

    def delete(self, key: str) -> bool:
        try:
            idx = self._find_row_index(key)
            if idx is None:
                return False
            self._client.get_store_sheet().delete_rows(idx)
            return True
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete key {key}: {e}")

    def keys(self, prefix: str = "") -> list[str]:
        try:
            return sorted(
                row[0] for row in self._rows()
                if row and row[0] and row[0].startswith(prefix)
            )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list keys: {e}")
