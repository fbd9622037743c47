"""Abstract interface for OCR providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class OCRResult:
    """Text read from an image."""

    text: str
    provider: str
    confidence: float | None = None


class IOCRProvider(ABC):
    """
    Extracts raw text from an image.

    Implementations: GoogleVisionOCR
    """

    @abstractmethod
    async def extract_text(self, image: bytes, content_type: str) -> OCRResult:
        """
        Run text detection on an image.

        Raises:
            ExtractionError: categorized failure (auth, quota, network, no_text)
        """
        pass
