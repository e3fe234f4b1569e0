"""
Ledger Page Scanner using Gemini

Reads a photographed page of the shop's paper ledger and returns the
handwritten lines as candidate entries.

BOUNDARIES:
1. This service ONLY proposes entries; nothing is written to the ledger
2. The caller reviews the entries and hands them to the transaction editor
3. Lines the model returns in an unusable shape are dropped and logged,
   not guessed at
"""

import datetime as dt
import json
from typing import Any, Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError

from fiado.config import GeminiSettings, get_settings
from fiado.logger import get_logger
from fiado.models.ledger import ScannedEntry


logger = get_logger(__name__)


class ScannerError(Exception):
    """Base exception for scanner errors."""
    pass


class MissingApiKeyError(ScannerError):
    """No Gemini API key is configured."""
    pass


class InvalidApiKeyError(ScannerError):
    """Gemini rejected the configured API key."""
    pass


class ScanFailedError(ScannerError):
    """The image could not be read into ledger entries."""
    pass


SCAN_PROMPT = """You are reading a photo of a handwritten credit ledger ("caderno de fiado") from a small shop.

Extract every entry written on the page. Each line usually has:
- A date (day/month, or just the day). Assume the year {year} when it is not written.
- A description of the item or of the payment (e.g. "Anel", "Brinco", "Conjunto", "Pagamento").
- A money amount.

Decide whether each line is a SALE (the customer took goods and owes money) or a PAYMENT (the customer paid money back).
If the page has separate columns for incoming and outgoing amounts, use them: amounts in the right-hand column are usually sales.

Write every date as YYYY-MM-DD.

Respond with ONLY a JSON array in this exact format:
[{{"date": "YYYY-MM-DD", "description": "text", "value": 150.00, "type": "sale"}}]

"type" must be "sale" or "payment". If you cannot read any entries, respond with []."""


class GeminiLedgerScanner:
    """
    Ledger page scanner backed by a Gemini vision model.

    The model is created on first use, so a missing key surfaces as
    MissingApiKeyError at scan time rather than at startup.
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._model: Optional[genai.GenerativeModel] = None

    def _get_model(self) -> genai.GenerativeModel:
        """Get or create the Gemini model."""
        if not self._settings.api_key:
            raise MissingApiKeyError("GEMINI_API_KEY is not set")

        if self._model is None:
            genai.configure(api_key=self._settings.api_key)
            self._model = genai.GenerativeModel(
                model_name=self._settings.model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                    "response_mime_type": "application/json",
                },
            )
        return self._model

    async def scan_ledger_image(
        self,
        image_bytes: bytes,
        mime_type: str = "image/jpeg",
        today: Optional[dt.date] = None,
    ) -> list[ScannedEntry]:
        """
        Extract candidate entries from a ledger page photo.

        Args:
            image_bytes: Raw image content
            mime_type: MIME type of the image
            today: Reference day for the assumed year (default: today)

        Returns:
            The entries read from the page, possibly empty

        Raises:
            MissingApiKeyError: If no API key is configured
            InvalidApiKeyError: If Gemini rejects the key
            ScanFailedError: If the call fails or the response is unusable
        """
        if not image_bytes:
            raise ScanFailedError("Image is empty")

        model = self._get_model()
        prompt = SCAN_PROMPT.format(year=(today or dt.date.today()).year)

        try:
            response = await model.generate_content_async([
                {"mime_type": mime_type, "data": image_bytes},
                prompt,
            ])
            text = response.text
        except google_exceptions.GoogleAPIError as e:
            if _is_invalid_key(e):
                logger.error("scan_rejected_api_key", error=str(e))
                raise InvalidApiKeyError("Gemini rejected the API key") from e
            logger.error("scan_failed", error=str(e))
            raise ScanFailedError(f"Gemini request failed: {e}") from e
        except ValueError as e:
            # response.text raises when the candidate was blocked or empty
            logger.error("scan_failed", error=str(e))
            raise ScanFailedError(f"Gemini returned no usable text: {e}") from e

        entries = parse_scan_response(text)
        logger.info("scan_completed", entries=len(entries), mime_type=mime_type)
        return entries


def _is_invalid_key(error: Exception) -> bool:
    if isinstance(error, google_exceptions.PermissionDenied):
        return True
    message = str(error)
    return "403" in message or "API key not valid" in message


def parse_scan_response(text: Optional[str]) -> list[ScannedEntry]:
    """
    Turn the model's JSON text into entries.

    An empty response means an empty page. Items that fail validation
    are dropped.

    Raises:
        ScanFailedError: If the text is not a JSON array
    """
    if not text or not text.strip():
        return []

    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as e:
        raise ScanFailedError(f"Gemini response is not JSON: {e}") from e

    if not isinstance(data, list):
        raise ScanFailedError("Gemini response is not a JSON array")

    entries = []
    for index, item in enumerate(data):
        try:
            entries.append(ScannedEntry.model_validate(item))
        except ValidationError as e:
            logger.warning("scan_entry_dropped", index=index, error=str(e))
    return entries
