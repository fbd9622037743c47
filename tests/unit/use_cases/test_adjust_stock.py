"""Tests for AdjustStockUseCase."""

import pytest

from src.application.dto.requests import AdjustStockRequest, QuickAdjustRequest
from src.application.use_cases import AdjustStockUseCase
from src.core.entities import MovementType
from src.core.exceptions import (
    BackendUnavailableError,
    ConfirmationRequiredError,
    InsufficientStockError,
    InvalidQuantityError,
)
from src.core.services import MutationStatus, StockMutationEngine


@pytest.fixture
def use_case(backend, cache) -> AdjustStockUseCase:
    return AdjustStockUseCase(StockMutationEngine(backend, cache))


async def test_confirmed_response(use_case):
    result = await use_case.execute("p2", AdjustStockRequest(quantity=4, type=MovementType.IN))
    product = await use_case.current_product("p2")

    response = use_case.to_response(result, product)

    assert response.status == "confirmed"
    assert response.movement.quantity == 4
    assert response.product.current_stock == 14
    assert response.notification.description == "Added 4 unit(s) to Bread"
    assert response.states[0] == "idle"
    assert response.states[-1] == "idle"


async def test_quick_adjust_removes(use_case, backend):
    result = await use_case.quick_adjust("p2", QuickAdjustRequest(delta=-3))

    assert result.status == MutationStatus.CONFIRMED
    assert backend.products["p2"].current_stock == 7


async def test_rejected_raises_domain_error(use_case):
    with pytest.raises(InsufficientStockError):
        await use_case.execute("p1", AdjustStockRequest(quantity=3, type=MovementType.OUT))


async def test_invalid_quantity(use_case, backend):
    with pytest.raises(InvalidQuantityError):
        await use_case.execute("p1", AdjustStockRequest(quantity=1.5, type=MovementType.IN))
    assert backend.count("add_stock_movement") == 0


async def test_large_change_needs_confirmation(use_case, backend):
    with pytest.raises(ConfirmationRequiredError):
        await use_case.execute("p2", AdjustStockRequest(quantity=51, type=MovementType.IN))

    result = await use_case.execute(
        "p2", AdjustStockRequest(quantity=51, type=MovementType.IN, confirmed=True)
    )
    assert result.ok
    assert backend.products["p2"].current_stock == 61


async def test_backend_failure_raises_after_rollback(use_case, backend, cache):
    backend.failures["add_stock_movement"] = BackendUnavailableError("memory", "add", "down")

    with pytest.raises(BackendUnavailableError):
        await use_case.execute("p2", AdjustStockRequest(quantity=2, type=MovementType.IN))

    assert backend.products["p2"].current_stock == 10
