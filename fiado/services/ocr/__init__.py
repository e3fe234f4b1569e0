"""
OCR Services Package

Reads photographed ledger pages into candidate entries.
"""

from fiado.services.ocr.gemini_service import (
    GeminiLedgerScanner,
    InvalidApiKeyError,
    MissingApiKeyError,
    ScanFailedError,
    ScannerError,
    parse_scan_response,
)

__all__ = [
    "GeminiLedgerScanner",
    "InvalidApiKeyError",
    "MissingApiKeyError",
    "ScanFailedError",
    "ScannerError",
    "parse_scan_response",
]
