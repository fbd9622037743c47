"""List Inventory Use Case: filtered, sorted product view and low-stock alerts."""

from src.application.dto.responses import (
    LowStockAlertResponse,
    ProductListResponse,
    ProductResponse,
)
from src.application.services import create_inventory_list_engine
from src.config import get_logger, get_settings
from src.core.entities import InventoryFilters, MarkupTier, Product
from src.core.services import (
    InventoryListEngine,
    InventoryView,
    LowStockAlert,
    StockMutationEngine,
    is_low_stock,
)
from src.core.services.inventory_list import sanitize_number
from src.core.services.pricing import display_price

logger = get_logger(__name__)


def product_to_response(product: Product) -> ProductResponse:
    """Convert a product entity to its API shape."""
    default_markup = MarkupTier(get_settings().inventory.default_markup)
    return ProductResponse(
        id=product.id,
        name=product.name,
        barcode=product.barcode,
        category=product.category,
        price=product.price,
        price_50=product.price_50,
        price_70=product.price_70,
        price_100=product.price_100,
        markup=product.markup.value if product.markup else None,
        display_price=display_price(product, default_markup),
        min_stock_level=product.min_stock_level,
        ideal_stock=product.ideal_stock,
        current_stock=sanitize_number(product.current_stock),
        is_low_stock=is_low_stock(product),
        supplier=product.supplier,
        expiry_date=product.expiry_date,
        image_url=product.image_url,
        created_at=product.created_at,
    )


class ListInventoryUseCase:
    """Apply list filters to the cached product collection."""

    def __init__(
        self,
        engine: InventoryListEngine | None = None,
        stock_engine: StockMutationEngine | None = None,
    ):
        self._engine = engine
        self._stock_engine = stock_engine

    def _get_engine(self) -> InventoryListEngine:
        if self._engine is None:
            self._engine = create_inventory_list_engine()
        return self._engine

    async def execute(
        self,
        filters: InventoryFilters | None = None,
        refresh: bool = False,
    ) -> InventoryView:
        """Build the inventory view for the given filters."""
        engine = self._get_engine()
        engine.reset_filters()
        for key, value in (filters or InventoryFilters()).model_dump().items():
            engine.update_filter(key, value)

        loading = self._stock_engine.loading_ids if self._stock_engine else ()
        view = await engine.view(force=refresh, loading_ids=loading)
        logger.info(
            "inventory_listed",
            total=view.total_products,
            filtered=view.filtered_count,
            active_filters=view.has_active_filters,
            refresh=refresh,
        )
        return view

    async def low_stock(self) -> list[LowStockAlert]:
        return await self._get_engine().low_stock_alerts()

    def to_response(self, view: InventoryView) -> ProductListResponse:
        """Convert view to API response."""
        return ProductListResponse(
            products=[product_to_response(p) for p in view.products],
            total_products=view.total_products,
            filtered_count=view.filtered_count,
            categories=view.categories,
            filters=view.filters,
            has_active_filters=view.has_active_filters,
            low_stock_count=view.low_stock_count,
            loading_ids=view.loading_ids,
        )

    @staticmethod
    def alerts_to_response(alerts: list[LowStockAlert]) -> list[LowStockAlertResponse]:
        return [
            LowStockAlertResponse(
                product_id=alert.product.id,
                name=alert.product.name,
                current_stock=alert.current_stock,
                min_stock_level=alert.min_stock,
                deficit=alert.stock_deficit,
            )
            for alert in alerts
        ]
