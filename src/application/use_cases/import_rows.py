"""Import Rows Use Case: reconcile confirmed rows against the backend."""

from src.application.dto.responses import ImportReportResponse, RowFailureResponse
from src.application.services import get_import_reconciler
from src.config import get_logger
from src.core.entities import ImportedProduct
from src.core.services import ImportReconciler, ReconciliationReport

logger = get_logger(__name__)


class ImportRowsUseCase:
    """Create products from rows a user reviewed in a preview."""

    def __init__(self, reconciler: ImportReconciler | None = None):
        self._reconciler = reconciler

    @property
    def reconciler(self) -> ImportReconciler:
        if self._reconciler is None:
            self._reconciler = get_import_reconciler()
        return self._reconciler

    async def execute(self, rows: list[ImportedProduct]) -> ReconciliationReport:
        logger.info("import_rows_started", rows=len(rows))
        return await self.reconciler.reconcile(rows)

    @staticmethod
    def to_response(report: ReconciliationReport) -> ImportReportResponse:
        """Convert report to API response."""
        return ImportReportResponse(
            total=report.total,
            succeeded=report.succeeded,
            skipped=report.skipped,
            failed=report.failed,
            errors=[RowFailureResponse(name=e.name, error=e.error) for e in report.errors],
            error_overflow=report.error_overflow,
            created_ids=report.created_ids,
            refreshed=report.refreshed,
            summary=report.summary,
        )
