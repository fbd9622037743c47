"""OCR infrastructure implementations."""

from src.infrastructure.ocr.google_vision import GoogleVisionOCR, get_ocr_provider

__all__ = [
    "GoogleVisionOCR",
    "get_ocr_provider",
]
