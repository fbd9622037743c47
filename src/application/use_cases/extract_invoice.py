"""Extract Invoice Use Case: OCR + LLM structuring of an invoice image."""

from typing import TYPE_CHECKING

from src.application.dto.responses import InvoicePreviewResponse
from src.application.services import get_invoice_parser
from src.config import get_logger, get_settings
from src.config.settings import ImportSettings
from src.core.entities import InvoiceExtractionResult
from src.core.exceptions import FileTooLargeError, UnsupportedFileTypeError

if TYPE_CHECKING:
    from src.infrastructure.parsers import InvoiceParser

logger = get_logger(__name__)


class ExtractInvoiceUseCase:
    """
    Use case for reading products off an invoice image.

    Type and size are checked before any external call. The result is a
    preview: rows are imported separately once the user confirms them.
    """

    def __init__(
        self,
        parser: "InvoiceParser | None" = None,
        settings: ImportSettings | None = None,
    ):
        self._parser = parser
        self._settings = settings or get_settings().imports

    @property
    def parser(self) -> "InvoiceParser":
        if self._parser is None:
            self._parser = get_invoice_parser()
        return self._parser

    def validate_upload(self, filename: str, content_type: str | None, size: int) -> None:
        """
        Raises:
            UnsupportedFileTypeError: not JPEG/PNG (PDF gets its own message)
            FileTooLargeError: image exceeds the invoice limit
        """
        allowed = self._settings.allowed_invoice_types
        if (content_type or "").lower() not in allowed:
            raise UnsupportedFileTypeError(filename, content_type or "unknown", allowed)
        if size > self._settings.max_invoice_size:
            raise FileTooLargeError(filename, size, self._settings.max_invoice_size)

    async def execute(
        self, content: bytes, filename: str, content_type: str | None
    ) -> InvoiceExtractionResult:
        self.validate_upload(filename, content_type, len(content))
        logger.info("invoice_extraction_started", filename=filename, size=len(content))
        result = await self.parser.extract(content, (content_type or "").lower())
        logger.info(
            "invoice_extraction_finished",
            filename=filename,
            success=result.success,
            category=result.error_category,
        )
        return result

    @staticmethod
    def to_response(result: InvoiceExtractionResult) -> InvoicePreviewResponse:
        return InvoicePreviewResponse(**result.model_dump())
