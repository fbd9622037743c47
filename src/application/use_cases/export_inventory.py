"""Export Inventory Use Case: the product collection as an .xlsx download."""

from dataclasses import dataclass

from src.application.services import create_inventory_list_engine
from src.config import get_logger
from src.core.services import InventoryListEngine
from src.infrastructure.parsers import export_filename, export_inventory_workbook

logger = get_logger(__name__)


@dataclass
class ExportResult:
    content: bytes
    filename: str
    product_count: int


class ExportInventoryUseCase:
    """Write every product, name-ordered, in the import column layout."""

    def __init__(self, engine: InventoryListEngine | None = None):
        self._engine = engine

    async def execute(self) -> ExportResult:
        engine = self._engine or create_inventory_list_engine()
        view = await engine.view()
        content = export_inventory_workbook(view.products)
        filename = export_filename()
        logger.info("inventory_exported", products=view.total_products, filename=filename)
        return ExportResult(content=content, filename=filename, product_count=view.total_products)
