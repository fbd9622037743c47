"""Checkout Use Case: sell a scanned cart as sequential OUT movements."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.application.dto.requests import CheckoutRequest
from src.application.dto.responses import CheckoutLineResponse, CheckoutResponse
from src.application.services import get_backend, get_query_cache
from src.application.use_cases.manage_product import ManageProductUseCase
from src.config import get_logger, get_settings
from src.core.entities import MarkupTier, MovementType, Product, StockMovement
from src.core.exceptions import (
    InsufficientStockError,
    InvalidQuantityError,
    InventoryError,
    ProductNotFoundError,
    ValidationError,
)
from src.core.interfaces import IBackendAdapter
from src.core.services import QueryCache
from src.core.services.inventory_list import sanitize_number
from src.core.services.pricing import display_price
from src.core.services.query_cache import PRODUCTS_KEY, history_key
from src.core.services.stock_mutation import parse_quantity

logger = get_logger(__name__)


class CheckoutStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    REJECTED = "rejected"


class LineStatus(str, Enum):
    SOLD = "sold"
    FAILED = "failed"
    NOT_ATTEMPTED = "not_attempted"


@dataclass
class CheckoutLine:
    """Outcome for one product in the cart."""

    product_id: str
    quantity: int
    status: LineStatus = LineStatus.NOT_ATTEMPTED
    product: Product | None = None
    movement: StockMovement | None = None
    error: InventoryError | None = None


@dataclass
class CheckoutResult:
    status: CheckoutStatus
    lines: list[CheckoutLine] = field(default_factory=list)
    total: float = 0.0
    refreshed: bool = False

    @property
    def sold(self) -> list[CheckoutLine]:
        return [line for line in self.lines if line.status == LineStatus.SOLD]

    @property
    def summary(self) -> str:
        return f"{len(self.sold)} of {len(self.lines)} item(s) sold"


def merge_cart(items: list[tuple[str, Any]]) -> list[tuple[str, int]]:
    """
    One entry per product, in first-scan order, with quantities summed.

    Raises:
        ValidationError: empty cart
        InvalidQuantityError: a quantity that is not a positive whole number
    """
    if not items:
        raise ValidationError("items", "The cart is empty")
    merged: dict[str, int] = {}
    for product_id, quantity in items:
        qty = parse_quantity(quantity)
        if qty is None:
            raise InvalidQuantityError(quantity)
        merged[product_id] = merged.get(product_id, 0) + qty
    return list(merged.items())


class CheckoutUseCase:
    """
    Mark a cart as paid and take its items out of stock.

    Every line is checked against current stock before anything is written,
    so a cart with an unknown product or a short line is rejected whole.
    Movements are then written one line at a time, in cart order. A backend
    failure stops the run: earlier lines stay sold, later lines are not
    attempted. The product cache is refreshed once at the end.
    """

    def __init__(
        self,
        backend: IBackendAdapter | None = None,
        cache: QueryCache | None = None,
    ):
        self._backend = backend
        self._cache = cache

    @property
    def backend(self) -> IBackendAdapter:
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    @property
    def cache(self) -> QueryCache:
        if self._cache is None:
            self._cache = get_query_cache()
        return self._cache

    async def execute(self, request: CheckoutRequest) -> CheckoutResult:
        cart = merge_cart([(item.product_id, item.quantity) for item in request.items])
        logger.info("checkout_started", lines=len(cart), backend=self.backend.name)

        products = await self.cache.fetch(PRODUCTS_KEY, self.backend.get_all_products, force=True)
        by_id = {p.id: p for p in products}
        lines = [
            CheckoutLine(product_id=pid, quantity=qty, product=by_id.get(pid)) for pid, qty in cart
        ]

        if not self._check_stock(lines):
            logger.info(
                "checkout_rejected",
                failed=[line.product_id for line in lines if line.error is not None],
            )
            return CheckoutResult(status=CheckoutStatus.REJECTED, lines=lines)

        try:
            await self._write_movements(lines)
        finally:
            result = self._result(lines)
            if result.sold:
                result.refreshed = await self._refresh(result.sold)

        logger.info(
            "checkout_completed",
            status=result.status.value,
            sold=len(result.sold),
            lines=len(lines),
            total=result.total,
        )
        return result

    @staticmethod
    def _check_stock(lines: list[CheckoutLine]) -> bool:
        ok = True
        for line in lines:
            if line.product is None:
                line.error = ProductNotFoundError(line.product_id)
            else:
                available = sanitize_number(line.product.current_stock)
                if line.quantity > available:
                    line.error = InsufficientStockError(line.product_id, line.quantity, available)
            if line.error is not None:
                line.status = LineStatus.FAILED
                ok = False
        return ok

    async def _write_movements(self, lines: list[CheckoutLine]) -> None:
        for line in lines:
            try:
                line.movement = await self.backend.add_stock_movement(
                    line.product_id, line.quantity, MovementType.OUT
                )
            except InventoryError as e:
                line.status = LineStatus.FAILED
                line.error = e
                logger.error(
                    "checkout_line_failed",
                    product_id=line.product_id,
                    quantity=line.quantity,
                    error=str(e),
                )
                return
            line.status = LineStatus.SOLD

    @staticmethod
    def _result(lines: list[CheckoutLine]) -> CheckoutResult:
        default_markup = MarkupTier(get_settings().inventory.default_markup)
        sold = [line for line in lines if line.status == LineStatus.SOLD]
        if len(sold) == len(lines):
            status = CheckoutStatus.COMPLETED
        elif sold:
            status = CheckoutStatus.PARTIAL
        else:
            status = CheckoutStatus.REJECTED
        total = sum(
            sanitize_number(display_price(line.product, default_markup)) * line.quantity
            for line in sold
            if line.product is not None
        )
        return CheckoutResult(status=status, lines=lines, total=round(total, 2))

    async def _refresh(self, sold: list[CheckoutLine]) -> bool:
        self.cache.invalidate(*PRODUCTS_KEY)
        self.cache.invalidate("product")
        for line in sold:
            self.cache.invalidate(*history_key(line.product_id))
        try:
            await self.cache.fetch(PRODUCTS_KEY, self.backend.get_all_products, force=True)
        except InventoryError as e:
            logger.warning("checkout_refresh_failed", error=str(e))
            return False
        return True

    def to_response(self, result: CheckoutResult) -> CheckoutResponse:
        """Convert result to API response."""
        return CheckoutResponse(
            status=result.status.value,
            lines=[
                CheckoutLineResponse(
                    product_id=line.product_id,
                    name=line.product.name if line.product else None,
                    quantity=line.quantity,
                    status=line.status.value,
                    movement=(
                        ManageProductUseCase.movement_to_response(line.movement)
                        if line.movement
                        else None
                    ),
                    error_code=line.error.code if line.error else None,
                    error=line.error.user_message if line.error else None,
                )
                for line in result.lines
            ],
            sold_count=len(result.sold),
            total=result.total,
            refreshed=result.refreshed,
            summary=result.summary,
        )
