"""
Google Cloud Vision OCR provider.

Runs DOCUMENT_TEXT_DETECTION on an invoice image and returns the full text.
"""

import base64
import time

import httpx

from src.config import get_logger, get_settings
from src.config.settings import OCRSettings
from src.core.exceptions import ExtractionError
from src.core.interfaces import IOCRProvider, OCRResult

logger = get_logger(__name__)

EXTRACTION_FALLBACK_MESSAGE = "Google Cloud Vision API error"


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value and value.isdigit():
        return int(value)
    return None


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"].get("message")
    return None


class GoogleVisionOCR(IOCRProvider):
    """Google Cloud Vision `images:annotate` client."""

    provider_name = "google_vision"

    def __init__(
        self,
        settings: OCRSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings or get_settings().ocr
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.api_key)

    def _payload(self, image: bytes) -> dict:
        return {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image).decode("ascii")},
                    "features": [{"type": "DOCUMENT_TEXT_DETECTION", "maxResults": 1}],
                }
            ]
        }

    async def _post(self, payload: dict) -> httpx.Response:
        params = {"key": self.settings.api_key}
        if self._client is not None:
            return await self._client.post(self.settings.endpoint, params=params, json=payload)
        async with httpx.AsyncClient(timeout=self.settings.timeout) as client:
            return await client.post(self.settings.endpoint, params=params, json=payload)

    async def extract_text(self, image: bytes, content_type: str) -> OCRResult:
        if not self.is_configured:
            raise ExtractionError("auth", "OCR API key not configured")

        start_time = time.time()
        try:
            response = await self._post(self._payload(image))
        except httpx.TimeoutException as e:
            raise ExtractionError("network", f"OCR request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ExtractionError("network", f"OCR request failed: {e}") from e

        if response.status_code == 401 or response.status_code == 403:
            logger.error("ocr_auth_failed", status=response.status_code)
            raise ExtractionError("auth", f"HTTP {response.status_code}")
        if response.status_code == 429:
            logger.warning("ocr_quota_exceeded", retry_after=response.headers.get("Retry-After"))
            raise ExtractionError("quota", "HTTP 429", retry_after=_retry_after(response))
        if response.status_code != 200:
            message = _error_message(response)
            logger.error("ocr_request_failed", status=response.status_code, error=message)
            raise ExtractionError(
                "unknown",
                f"HTTP {response.status_code}",
                user_message=message or EXTRACTION_FALLBACK_MESSAGE,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise ExtractionError("invalid_response", "OCR response is not JSON") from e

        responses = result.get("responses") or [{}]
        first = responses[0] or {}
        if first.get("error"):
            raise ExtractionError(
                "unknown",
                "OCR response error",
                user_message=first["error"].get("message") or EXTRACTION_FALLBACK_MESSAGE,
            )

        annotations = first.get("textAnnotations") or []
        text = annotations[0].get("description", "") if annotations else ""
        if not text.strip():
            raise ExtractionError(
                "no_text",
                "no text annotations",
                user_message=(
                    "No text detected in the image. "
                    "Please ensure the invoice is clear and readable."
                ),
            )

        logger.info(
            "ocr_complete",
            content_type=content_type,
            image_bytes=len(image),
            text_len=len(text),
            elapsed_ms=int((time.time() - start_time) * 1000),
        )
        return OCRResult(text=text, provider=self.provider_name)


# Singleton instance
_provider: GoogleVisionOCR | None = None


def get_ocr_provider() -> GoogleVisionOCR:
    """Get or create singleton OCR provider."""
    global _provider
    if _provider is None:
        _provider = GoogleVisionOCR()
    return _provider
