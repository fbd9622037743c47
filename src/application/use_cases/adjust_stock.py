"""Adjust Stock Use Case: one IN/OUT movement through the stock engine."""

from src.application.dto.requests import AdjustStockRequest, QuickAdjustRequest
from src.application.dto.responses import AdjustStockResponse, NotificationResponse
from src.application.services import get_stock_mutation_engine
from src.application.use_cases.list_inventory import product_to_response
from src.application.use_cases.manage_product import ManageProductUseCase
from src.config import get_logger
from src.core.entities import Product
from src.core.exceptions import InventoryError
from src.core.services import MutationStatus, StockMutationEngine, StockMutationResult
from src.core.services.query_cache import PRODUCTS_KEY

logger = get_logger(__name__)


class AdjustStockUseCase:
    """
    Record a stock movement.

    Rejected and unconfirmed requests raise their domain error. A backend
    failure raises after the cache has been rolled back. A request for a
    product that already has a change in flight is reported as ignored.
    """

    def __init__(self, engine: StockMutationEngine | None = None):
        self._engine = engine

    @property
    def engine(self) -> StockMutationEngine:
        if self._engine is None:
            self._engine = get_stock_mutation_engine()
        return self._engine

    async def execute(self, product_id: str, request: AdjustStockRequest) -> StockMutationResult:
        result = await self.engine.adjust_stock(
            product_id, request.quantity, request.type, confirm=request.confirmed
        )
        return self._check(result)

    async def quick_adjust(
        self, product_id: str, request: QuickAdjustRequest
    ) -> StockMutationResult:
        result = await self.engine.quick_adjust(product_id, request.delta, confirm=request.confirmed)
        return self._check(result)

    @staticmethod
    def _check(result: StockMutationResult) -> StockMutationResult:
        if result.status in (
            MutationStatus.REJECTED,
            MutationStatus.CANCELLED,
            MutationStatus.ROLLED_BACK,
        ):
            error = result.error or InventoryError("Stock update failed")
            logger.info(
                "adjust_stock_not_applied",
                product_id=result.product_id,
                status=result.status.value,
                code=error.code,
            )
            raise error
        return result

    async def current_product(self, product_id: str) -> Product | None:
        """The product after the change, reloaded from the backend."""
        engine = self.engine
        products = await engine.cache.fetch(PRODUCTS_KEY, engine.backend.get_all_products)
        return next((p for p in products if p.id == product_id), None)

    def to_response(
        self, result: StockMutationResult, product: Product | None = None
    ) -> AdjustStockResponse:
        """Convert result to API response."""
        notification = result.notification
        return AdjustStockResponse(
            status=result.status.value,
            product_id=result.product_id,
            quantity=result.quantity,
            type=result.movement_type.value,
            movement=(
                ManageProductUseCase.movement_to_response(result.movement)
                if result.movement
                else None
            ),
            product=product_to_response(product) if product else None,
            notification=(
                NotificationResponse(
                    level=notification.level,
                    title=notification.title,
                    description=notification.description,
                )
                if notification
                else None
            ),
            states=[state.value for state in result.states],
        )
