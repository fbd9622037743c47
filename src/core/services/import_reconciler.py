"""
Import reconciliation.

Turns parsed import rows into products, one row at a time:

1. a row whose barcode already exists is skipped as a duplicate
2. otherwise the product is created (markup defaults to 70, missing tier
   prices are derived from the base price)
3. a positive initial quantity becomes one IN movement; if that write
   fails the row counts as failed even though the product exists
4. any error is recorded against the row name and the loop continues

The product collection cache is refreshed once after the whole batch.
"""

import math
from dataclasses import dataclass, field
from datetime import date

from src.config import get_logger
from src.core.entities.imports import ImportedProduct
from src.core.entities.product import DEFAULT_MARKUP, MovementType, ProductDraft
from src.core.exceptions import InventoryError
from src.core.interfaces.backend import IBackendAdapter
from src.core.services.inventory_list import sanitize_number
from src.core.services.pricing import with_tier_prices
from src.core.services.query_cache import PRODUCTS_KEY, QueryCache

logger = get_logger(__name__)

DEFAULT_ERROR_LIMIT = 10


@dataclass
class RowFailure:
    name: str
    error: str


@dataclass
class ReconciliationReport:
    total: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[RowFailure] = field(default_factory=list)
    error_overflow: int = 0
    created_ids: list[str] = field(default_factory=list)
    refreshed: bool = False

    @property
    def summary(self) -> str:
        return (
            f"{self.succeeded} imported, "
            f"{self.skipped} skipped (duplicate barcode), "
            f"{self.failed} failed"
        )


def initial_quantity(row: ImportedProduct) -> int:
    """Whole units of opening stock. Fractions round down."""
    value = sanitize_number(row.current_stock)
    return math.floor(value) if value > 0 else 0


def _as_date(value: date | str | None) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def to_draft(row: ImportedProduct) -> ProductDraft:
    min_stock = sanitize_number(row.min_stock)
    draft = ProductDraft(
        name=row.name,
        barcode=row.barcode or None,
        category=row.category,
        price=row.price,
        price_50=row.price_50,
        price_70=row.price_70,
        price_100=row.price_100,
        markup=row.markup or DEFAULT_MARKUP,
        min_stock_level=math.floor(min_stock) if min_stock > 0 else None,
        supplier=row.supplier,
        expiry_date=_as_date(row.expiry_date),
    )
    return with_tier_prices(draft)


class ImportReconciler:
    """Sequential create/skip/fail loop over import rows."""

    def __init__(
        self,
        backend: IBackendAdapter,
        cache: QueryCache,
        error_limit: int = DEFAULT_ERROR_LIMIT,
    ) -> None:
        self._backend = backend
        self._cache = cache
        self._error_limit = error_limit

    async def reconcile(self, rows: list[ImportedProduct]) -> ReconciliationReport:
        report = ReconciliationReport(total=len(rows))
        logger.info("import_started", rows=len(rows), backend=self._backend.name)

        for row in rows:
            try:
                await self._import_row(row, report)
            except Exception as e:
                report.failed += 1
                message = e.user_message if isinstance(e, InventoryError) else str(e)
                self._record(report, row.name, message)
                logger.warning("import_row_failed", name=row.name, error=str(e))

        await self._refresh(report)
        logger.info(
            "import_completed",
            total=report.total,
            succeeded=report.succeeded,
            skipped=report.skipped,
            failed=report.failed,
        )
        return report

    async def _import_row(self, row: ImportedProduct, report: ReconciliationReport) -> None:
        barcode = (row.barcode or "").strip()
        if barcode:
            existing = await self._backend.get_product_by_barcode(barcode)
            if existing is not None:
                report.skipped += 1
                logger.debug("import_row_duplicate", name=row.name, barcode=barcode)
                return

        product = await self._backend.create_product(to_draft(row))
        report.created_ids.append(product.id)

        quantity = initial_quantity(row)
        if quantity > 0:
            try:
                await self._backend.add_stock_movement(product.id, quantity, MovementType.IN)
            except Exception as e:
                report.failed += 1
                reason = e.user_message if isinstance(e, InventoryError) else str(e)
                self._record(
                    report,
                    row.name,
                    f"Product created but initial stock of {quantity} was not added: {reason}",
                )
                logger.warning(
                    "import_initial_stock_failed",
                    product_id=product.id,
                    quantity=quantity,
                    error=str(e),
                )
                return

        report.succeeded += 1

    def _record(self, report: ReconciliationReport, name: str, message: str) -> None:
        if len(report.errors) < self._error_limit:
            report.errors.append(RowFailure(name=name, error=message))
        else:
            report.error_overflow += 1

    async def _refresh(self, report: ReconciliationReport) -> None:
        self._cache.invalidate(*PRODUCTS_KEY)
        self._cache.invalidate("product")
        try:
            await self._cache.fetch(PRODUCTS_KEY, self._backend.get_all_products, force=True)
        except InventoryError as e:
            logger.warning("import_refresh_failed", error=str(e))
            return
        report.refreshed = True
