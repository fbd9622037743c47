"""Import Spreadsheet Use Case: parse an .xlsx upload and import its rows."""

from dataclasses import dataclass
from pathlib import Path

from src.application.use_cases.import_rows import ImportRowsUseCase
from src.config import get_logger, get_settings
from src.config.settings import ImportSettings
from src.core.entities import SpreadsheetParseResult
from src.core.exceptions import FileTooLargeError, UnsupportedFileTypeError
from src.core.services import ReconciliationReport
from src.infrastructure.parsers import XLSX_MEDIA_TYPE, parse_spreadsheet

logger = get_logger(__name__)

ALLOWED_EXTENSIONS = [".xlsx"]


@dataclass
class SpreadsheetImportResult:
    """Parse result plus the import report when any row was valid."""

    parse: SpreadsheetParseResult
    report: ReconciliationReport | None = None


class ImportSpreadsheetUseCase:
    """
    Use case for spreadsheet imports.

    Flow:
    1. Validate file extension and size
    2. Parse the first sheet into candidate rows
    3. Reconcile valid rows (skipped for previews)
    """

    def __init__(
        self,
        import_rows: ImportRowsUseCase | None = None,
        settings: ImportSettings | None = None,
    ):
        self._import_rows = import_rows or ImportRowsUseCase()
        self._settings = settings or get_settings().imports

    def validate_upload(self, filename: str, size: int) -> None:
        """
        Raises:
            UnsupportedFileTypeError: not an .xlsx file
            FileTooLargeError: file exceeds the spreadsheet limit
        """
        if Path(filename or "").suffix.lower() not in ALLOWED_EXTENSIONS:
            raise UnsupportedFileTypeError(filename, XLSX_MEDIA_TYPE, ALLOWED_EXTENSIONS)
        if size > self._settings.max_spreadsheet_size:
            raise FileTooLargeError(filename, size, self._settings.max_spreadsheet_size)

    def preview(self, content: bytes, filename: str) -> SpreadsheetParseResult:
        """Parse without writing anything."""
        self.validate_upload(filename, len(content))
        result = parse_spreadsheet(content, header_search_rows=self._settings.header_search_rows)
        logger.info(
            "spreadsheet_preview",
            filename=filename,
            success=result.success,
            valid_rows=result.valid_rows,
        )
        return result

    async def execute(self, content: bytes, filename: str) -> SpreadsheetImportResult:
        """Parse and import. Nothing is written when parsing yields no valid rows."""
        parsed = self.preview(content, filename)
        if not parsed.success:
            return SpreadsheetImportResult(parse=parsed)

        report = await self._import_rows.execute(parsed.products)
        return SpreadsheetImportResult(parse=parsed, report=report)
