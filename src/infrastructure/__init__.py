"""Infrastructure layer implementations."""

from src.infrastructure import llm, ocr, parsers, storage

__all__ = ["storage", "llm", "ocr", "parsers"]
