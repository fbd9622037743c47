"""
Stock mutation engine.

Applies one stock movement to one product with an optimistic update of
the shared product cache and an exact rollback when the backend write
fails.

Per attempt:
    idle -> validating -> (rejected | optimistic_applied)
         -> (confirmed | rolled_back) -> idle

Checks run before any cache change or backend call:
1. the product has no mutation already in flight (else ignored)
2. quantity is a positive integer
3. OUT does not exceed the sanitized current stock
4. quantities above the threshold are confirmed by the caller
"""

import inspect
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Union

from src.config import get_logger
from src.core.entities.product import MovementType, Product, StockMovement, signed_quantity
from src.core.exceptions import (
    ConfirmationRequiredError,
    InsufficientStockError,
    InvalidQuantityError,
    InventoryError,
    ProductNotFoundError,
)
from src.core.interfaces.backend import IBackendAdapter
from src.core.services.inventory_list import sanitize_number
from src.core.services.query_cache import (
    PRODUCTS_KEY,
    QueryCache,
    history_key,
    product_key,
)

logger = get_logger(__name__)

SAFE_STOCK_THRESHOLD = 50

Confirmer = Union[
    bool,
    None,
    Callable[[int, MovementType, Product], Union[bool, Awaitable[bool]]],
]


class MutationState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    OPTIMISTIC_APPLIED = "optimistic_applied"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class MutationStatus(str, Enum):
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    IGNORED = "ignored"


@dataclass
class Notification:
    """User-facing message produced by a mutation."""

    level: str  # success | info | warning | error
    title: str
    description: str | None = None


@dataclass
class StockMutationResult:
    status: MutationStatus
    product_id: str
    quantity: Any
    movement_type: MovementType
    movement: StockMovement | None = None
    error: InventoryError | None = None
    notification: Notification | None = None
    states: list[MutationState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == MutationStatus.CONFIRMED


def parse_quantity(value: Any) -> int | None:
    """A positive whole number, or None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        value = int(value)
    return value if value > 0 else None


class StockMutationEngine:
    """Optimistic stock changes with a per-product in-flight guard."""

    def __init__(
        self,
        backend: IBackendAdapter,
        cache: QueryCache,
        threshold: int = SAFE_STOCK_THRESHOLD,
    ) -> None:
        self._backend = backend
        self._cache = cache
        self._threshold = threshold
        self._loading: set[str] = set()
        self._temp_seq = 0

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def backend(self) -> IBackendAdapter:
        return self._backend

    @property
    def cache(self) -> QueryCache:
        return self._cache

    @property
    def loading_ids(self) -> frozenset[str]:
        return frozenset(self._loading)

    def is_loading(self, product_id: str) -> bool:
        return product_id in self._loading

    async def quick_adjust(
        self, product_id: str, delta: Any, confirm: Confirmer = None
    ) -> StockMutationResult:
        """Positive delta adds stock, negative removes abs(delta)."""
        if isinstance(delta, (int, float)) and not isinstance(delta, bool) and delta > 0:
            return await self.adjust_stock(product_id, delta, MovementType.IN, confirm)
        quantity = abs(delta) if isinstance(delta, (int, float)) else delta
        return await self.adjust_stock(product_id, quantity, MovementType.OUT, confirm)

    async def adjust_stock(
        self,
        product_id: str,
        quantity: Any,
        movement_type: MovementType,
        confirm: Confirmer = None,
    ) -> StockMutationResult:
        """
        Validate, then apply one stock movement optimistically.

        Args:
            product_id: Target product.
            quantity: Requested unit count. Must be a positive integer.
            movement_type: IN or OUT.
            confirm: Approval for quantities above the threshold. A bool, or a
                callable (sync or async) asked only when approval is needed.

        Returns:
            StockMutationResult. Backend failures are reported on the result
            after rollback, never raised.
        """
        result = StockMutationResult(
            status=MutationStatus.IGNORED,
            product_id=product_id,
            quantity=quantity,
            movement_type=movement_type,
            states=[MutationState.IDLE],
        )

        if product_id in self._loading:
            logger.info("stock_mutation_ignored_in_flight", product_id=product_id)
            return result

        self._loading.add(product_id)
        try:
            await self._run(result, confirm)
        finally:
            self._loading.discard(product_id)
            result.states.append(MutationState.IDLE)
        return result

    async def _run(self, result: StockMutationResult, confirm: Confirmer) -> None:
        result.states.append(MutationState.VALIDATING)
        movement_type = result.movement_type

        qty = parse_quantity(result.quantity)
        if qty is None:
            logger.warning("invalid_stock_quantity", quantity=result.quantity)
            self._reject(
                result,
                InvalidQuantityError(result.quantity),
                Notification("warning", "Invalid quantity", "Please enter a valid positive quantity"),
            )
            return

        products = await self._cache.fetch(PRODUCTS_KEY, self._backend.get_all_products)
        product = next((p for p in products if p.id == result.product_id), None)
        if product is None:
            error = ProductNotFoundError(result.product_id)
            self._reject(result, error, Notification("error", "Product not found"))
            return

        available = sanitize_number(product.current_stock)
        if movement_type == MovementType.OUT and qty > available:
            error = InsufficientStockError(product.id, qty, available)
            logger.warning(
                "insufficient_stock",
                product_id=product.id,
                requested=qty,
                available=available,
            )
            self._reject(result, error, Notification("error", "Insufficient stock", error.user_message))
            return

        if qty > self._threshold and not await self._ask(confirm, qty, movement_type, product):
            logger.info("large_stock_update_cancelled", product_id=product.id, quantity=qty)
            result.status = MutationStatus.CANCELLED
            result.error = ConfirmationRequiredError(qty, self._threshold)
            result.states.append(MutationState.REJECTED)
            return

        await self._apply(result, product, qty)

    async def _ask(
        self, confirm: Confirmer, qty: int, movement_type: MovementType, product: Product
    ) -> bool:
        if confirm is None or isinstance(confirm, bool):
            return bool(confirm)
        answer = confirm(qty, movement_type, product)
        if inspect.isawaitable(answer):
            answer = await answer
        return bool(answer)

    def _reject(
        self, result: StockMutationResult, error: InventoryError, notification: Notification
    ) -> None:
        result.status = MutationStatus.REJECTED
        result.error = error
        result.notification = notification
        result.states.append(MutationState.REJECTED)

    def _next_temp_id(self) -> str:
        self._temp_seq += 1
        return f"temp-{int(time.time() * 1000)}-{self._temp_seq}"

    async def _apply(self, result: StockMutationResult, product: Product, qty: int) -> None:
        movement_type = result.movement_type
        delta = signed_quantity(qty, movement_type)
        temp_movement = StockMovement(
            id=self._next_temp_id(),
            product_id=product.id,
            quantity=delta,
            type=movement_type,
            date=date.today(),
        )

        def bump_stock(products: list[Product]) -> list[Product]:
            return [
                p.model_copy(
                    update={"current_stock": sanitize_number(p.current_stock) + delta}
                )
                if p.id == product.id
                else p
                for p in products
            ]

        def prepend_movement(history: list[StockMovement]) -> list[StockMovement]:
            return [temp_movement, *history]

        logger.info(
            "stock_mutation_started",
            product_id=product.id,
            quantity=qty,
            type=movement_type.value,
        )
        result.states.append(MutationState.OPTIMISTIC_APPLIED)

        try:
            outcome = await self._cache.with_optimistic_update(
                PRODUCTS_KEY,
                bump_stock,
                lambda: self._backend.add_stock_movement(product.id, qty, movement_type),
                related={history_key(product.id): prepend_movement},
            )
        finally:
            self._cache.invalidate(*PRODUCTS_KEY)
            if product.barcode:
                self._cache.invalidate(*product_key(product.barcode))
            self._cache.invalidate(*history_key(product.id))

        if outcome.ok:
            result.status = MutationStatus.CONFIRMED
            result.movement = outcome.value
            result.states.append(MutationState.CONFIRMED)
            verb = "Added" if movement_type == MovementType.IN else "Removed"
            prep = "to" if movement_type == MovementType.IN else "from"
            result.notification = Notification(
                "success",
                "Stock updated",
                f"{verb} {qty} unit(s) {prep} {product.name}",
            )
            logger.info(
                "stock_mutation_confirmed",
                product_id=product.id,
                quantity=qty,
                type=movement_type.value,
            )
            return

        error = outcome.error
        logger.error(
            "stock_mutation_failed",
            product_id=product.id,
            quantity=qty,
            type=movement_type.value,
            error=str(error),
        )
        result.status = MutationStatus.ROLLED_BACK
        result.states.append(MutationState.ROLLED_BACK)
        if isinstance(error, InventoryError):
            result.error = error
            description = error.user_message
        else:
            description = "Failed to update stock. Please try again."
            result.error = InventoryError(
                str(error), code="STOCK_UPDATE_FAILED", user_message=description
            )
        result.notification = Notification("error", "Failed to update stock", description)
