"""Core interfaces (ports) for dependency injection."""

from src.core.interfaces.backend import IBackendAdapter
from src.core.interfaces.llm import (
    HealthStatus,
    ILLMProvider,
    LLMResponse,
)
from src.core.interfaces.ocr import IOCRProvider, OCRResult

__all__ = [
    # Backend interface
    "IBackendAdapter",
    # LLM interfaces
    "ILLMProvider",
    "LLMResponse",
    "HealthStatus",
    # OCR interfaces
    "IOCRProvider",
    "OCRResult",
]
