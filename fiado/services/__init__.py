"""Services package."""

from fiado.services.ocr import (
    GeminiLedgerScanner,
    InvalidApiKeyError,
    MissingApiKeyError,
    ScanFailedError,
    ScannerError,
)
from fiado.services.storage import (
    ConnectionError,
    DocumentStoreInterface,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    MalformedRecordError,
    NotFoundError,
    StorageError,
    VersionConflictError,
)

__all__ = [
    # OCR services
    "GeminiLedgerScanner",
    "InvalidApiKeyError",
    "MissingApiKeyError",
    "ScanFailedError",
    "ScannerError",
    # Storage services
    "ConnectionError",
    "DocumentStoreInterface",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "MalformedRecordError",
    "NotFoundError",
    "StorageError",
    "VersionConflictError",
]
