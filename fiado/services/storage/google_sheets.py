"""
Google Sheets Document Store

DESIGN DECISION: Google Sheets is the shop's storage backend because:
1. The owner can open the spreadsheet and see the data directly
2. No database setup required
3. Built-in backup (Google's infrastructure)

Each collection is one worksheet. Each document is one row:

    id | version | updated_at | document_json

Customer documents embed their whole transaction list in the JSON
cell, which matches the whole-record read-modify-write unit the ledger
already works with.

TRADEOFFS:
- A cell holds at most 50,000 characters; a customer with thousands of
  transactions will not fit (fine for a notebook-sized ledger)
- No transactions; the version check is a read followed by a write, so
  two writers inside the same instant can still race
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from fiado.config import GoogleSheetsSettings, get_settings
from fiado.logger import get_logger
from fiado.services.storage.interface import (
    ConnectionError,
    DocumentStoreInterface,
    MalformedRecordError,
    StorageError,
    VersionConflictError,
)


DOCUMENT_COLUMNS = [
    "id",
    "version",
    "updated_at",
    "document_json",
]

logger = get_logger(__name__)


def is_transient_api_error(error: BaseException) -> bool:
    """Quota (429) and server-side (5xx) API errors are worth another try."""
    if not isinstance(error, gspread.exceptions.APIError):
        return False
    status = getattr(error.response, "status_code", None)
    return status == 429 or (status is not None and status >= 500)


# Transient API failures are retried; everything else surfaces at once
api_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_exception(is_transient_api_error),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup, one worksheet per
    collection.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
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

    def get_collection_sheet(self, collection: str) -> gspread.Worksheet:
        """Get or create the worksheet backing a collection."""
        if collection in self._worksheets:
            return self._worksheets[collection]

        title = self._settings.sheet_name_for(collection)
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
            logger.info("worksheet_created", collection=collection, title=title)

        self._worksheets[collection] = sheet
        return sheet


class GoogleSheetsDocumentStore(DocumentStoreInterface):
    """
    Google Sheets implementation of the document store.

    Documents are JSON-serialized into a single cell per row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _document_to_row(self, doc_id: str, version: int, data: dict) -> list:
        body = {k: v for k, v in data.items() if k not in ("id", "version")}
        return [
            doc_id,
            str(version),
            datetime.now(timezone.utc).isoformat(),
            json.dumps(body, ensure_ascii=False),
        ]

    def _row_to_document(self, collection: str, row: list) -> dict[str, Any]:
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        doc_id = safe_get(0)
        try:
            body = json.loads(safe_get(3, "{}"))
            version = int(safe_get(1, "0"))
        except ValueError as e:
            raise MalformedRecordError(
                f"Row {collection}/{doc_id} cannot be decoded: {e}"
            )
        if not isinstance(body, dict):
            raise MalformedRecordError(
                f"Row {collection}/{doc_id} does not hold a JSON object"
            )
        return {**body, "id": doc_id, "version": version}

    @api_retry
    def _all_rows(self, collection: str) -> list[list[str]]:
        """All data rows (header excluded)."""
        sheet = self._client.get_collection_sheet(collection)
        return sheet.get_all_values()[1:]

    def _find_row(
        self,
        collection: str,
        doc_id: str,
    ) -> tuple[Optional[int], Optional[list]]:
        """Locate a document: (1-based sheet row index, row) or (None, None)."""
        for idx, row in enumerate(self._all_rows(collection), start=2):  # Row 1 is header
            if row and row[0] == doc_id:
                return idx, row
        return None, None

    @api_retry
    def _append_row(self, collection: str, row: list) -> None:
        sheet = self._client.get_collection_sheet(collection)
        sheet.append_row(row, value_input_option="RAW")

    @api_retry
    def _replace_row(self, collection: str, row_index: int, row: list) -> None:
        sheet = self._client.get_collection_sheet(collection)
        sheet.update(
            range_name=f"A{row_index}:D{row_index}",
            values=[row],
            value_input_option="RAW",
        )

    @api_retry
    def _delete_row(self, collection: str, row_index: int) -> None:
        sheet = self._client.get_collection_sheet(collection)
        sheet.delete_rows(row_index)

    async def list_documents(self, collection: str) -> list[dict[str, Any]]:
        try:
            return [
                self._row_to_document(collection, row)
                for row in self._all_rows(collection)
                if row and row[0]  # Skip empty rows
            ]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {collection}: {e}")

    async def get_document(
        self,
        collection: str,
        doc_id: str,
    ) -> Optional[dict[str, Any]]:
        try:
            _, row = self._find_row(collection, doc_id)
            return self._row_to_document(collection, row) if row else None
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {collection}/{doc_id}: {e}")

    async def create_document(
        self,
        collection: str,
        data: dict[str, Any],
    ) -> str:
        doc_id = uuid4().hex
        try:
            self._append_row(collection, self._document_to_row(doc_id, 1, data))
            return doc_id
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create document in {collection}: {e}")

    async def set_document(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> int:
        try:
            row_index, row = self._find_row(collection, doc_id)
            if row_index is None:
                self._append_row(collection, self._document_to_row(doc_id, 1, data))
                return 1

            current_version = self._row_to_document(collection, row)["version"]
            if expected_version is not None and current_version != expected_version:
                raise VersionConflictError(
                    collection, doc_id, expected_version, current_version
                )

            new_version = current_version + 1
            self._replace_row(
                collection,
                row_index,
                self._document_to_row(doc_id, new_version, data),
            )
            return new_version
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write {collection}/{doc_id}: {e}")

    async def delete_document(self, collection: str, doc_id: str) -> bool:
        try:
            row_index, _ = self._find_row(collection, doc_id)
            if row_index is None:
                return False
            self._delete_row(collection, row_index)
            return True
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {collection}/{doc_id}: {e}")

    async def find_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
    ) -> list[dict[str, Any]]:
        documents = await self.list_documents(collection)
        return [doc for doc in documents if doc.get(field) == value]
