"""Tests for CheckoutUseCase."""

import pytest

from src.application.dto.requests import CartItemRequest, CheckoutRequest
from src.application.use_cases import CheckoutUseCase
from src.application.use_cases.checkout import CheckoutStatus, LineStatus, merge_cart
from src.core.entities import MovementType
from src.core.exceptions import (
    BackendUnavailableError,
    InsufficientStockError,
    InvalidQuantityError,
    ProductNotFoundError,
    ValidationError,
)
from src.core.services.query_cache import PRODUCTS_KEY, history_key


def cart(*lines) -> CheckoutRequest:
    return CheckoutRequest(
        items=[CartItemRequest(product_id=pid, quantity=qty) for pid, qty in lines]
    )


def test_merge_cart_sums_repeated_products():
    assert merge_cart([("p2", 2), ("p1", 1), ("p2", 1)]) == [("p2", 3), ("p1", 1)]


def test_merge_cart_empty():
    with pytest.raises(ValidationError) as exc_info:
        merge_cart([])

    assert exc_info.value.details["field"] == "items"


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "abc"])
def test_merge_cart_invalid_quantity(quantity):
    with pytest.raises(InvalidQuantityError):
        merge_cart([("p1", quantity)])


async def test_checkout_sells_every_line(backend, cache):
    use_case = CheckoutUseCase(backend, cache)

    result = await use_case.execute(cart(("p2", 2), ("p1", 1), ("p2", 1)))

    assert result.status == CheckoutStatus.COMPLETED
    assert [(line.product_id, line.quantity) for line in result.lines] == [("p2", 3), ("p1", 1)]
    assert all(line.status == LineStatus.SOLD for line in result.lines)
    assert [(m.product_id, m.quantity, m.type) for m in reversed(backend.movements)] == [
        ("p2", -3, MovementType.OUT),
        ("p1", -1, MovementType.OUT),
    ]
    assert backend.products["p2"].current_stock == 7
    assert backend.products["p1"].current_stock == 1
    # Bread has no tier price and sells at its base price
    assert result.total == round(0.8 * 3 + 2.04, 2)
    assert result.summary == "2 of 2 item(s) sold"


async def test_checkout_refreshes_cache_once(backend, cache):
    cache.set(history_key("p1"), [])
    use_case = CheckoutUseCase(backend, cache)

    result = await use_case.execute(cart(("p1", 2), ("p2", 1)))

    assert result.refreshed
    # One forced read to check stock, one after the writes
    assert backend.count("get_all_products") == 2
    cached = {p.id: p.current_stock for p in cache.get(PRODUCTS_KEY)}
    assert cached == {"p1": 0, "p2": 9}
    assert not cache.is_fresh(history_key("p1"))


async def test_checkout_rejects_short_cart_without_writing(backend, cache):
    use_case = CheckoutUseCase(backend, cache)

    result = await use_case.execute(cart(("p2", 1), ("p1", 3)))

    assert result.status == CheckoutStatus.REJECTED
    assert backend.count("add_stock_movement") == 0
    bread, milk = result.lines
    assert bread.status == LineStatus.NOT_ATTEMPTED
    assert milk.status == LineStatus.FAILED
    assert isinstance(milk.error, InsufficientStockError)
    assert not result.refreshed
    assert result.total == 0


async def test_checkout_rejects_unknown_product(backend, cache):
    use_case = CheckoutUseCase(backend, cache)

    result = await use_case.execute(cart(("p2", 1), ("missing", 1)))

    assert result.status == CheckoutStatus.REJECTED
    assert isinstance(result.lines[1].error, ProductNotFoundError)
    assert result.lines[1].product is None
    assert backend.movements == []


async def test_checkout_stops_at_backend_failure(backend, cache):
    add = backend.add_stock_movement
    writes = []

    async def fail_after_first(product_id, quantity, movement_type):
        writes.append(product_id)
        if len(writes) > 1:
            raise BackendUnavailableError("memory", "add_stock_movement", "down")
        return await add(product_id, quantity, movement_type)

    backend.add_stock_movement = fail_after_first
    extra = backend.products["p2"].model_copy(update={"id": "p3", "name": "Jam"})
    backend.products["p3"] = extra
    use_case = CheckoutUseCase(backend, cache)

    result = await use_case.execute(cart(("p2", 2), ("p1", 1), ("p3", 1)))

    assert result.status == CheckoutStatus.PARTIAL
    assert [line.status for line in result.lines] == [
        LineStatus.SOLD,
        LineStatus.FAILED,
        LineStatus.NOT_ATTEMPTED,
    ]
    assert writes == ["p2", "p1"]
    assert isinstance(result.lines[1].error, BackendUnavailableError)
    assert backend.products["p2"].current_stock == 8
    assert backend.products["p1"].current_stock == 2
    assert result.total == 1.6
    assert result.refreshed
    assert result.summary == "1 of 3 item(s) sold"


async def test_checkout_nothing_sold_when_first_write_fails(backend, cache):
    backend.failures["add_stock_movement"] = BackendUnavailableError(
        "memory", "add_stock_movement", "down"
    )
    use_case = CheckoutUseCase(backend, cache)

    result = await use_case.execute(cart(("p2", 1), ("p1", 1)))

    assert result.status == CheckoutStatus.REJECTED
    assert [line.status for line in result.lines] == [
        LineStatus.FAILED,
        LineStatus.NOT_ATTEMPTED,
    ]
    assert not result.refreshed
    assert backend.count("get_all_products") == 1


async def test_checkout_response(backend, cache):
    use_case = CheckoutUseCase(backend, cache)

    response = use_case.to_response(await use_case.execute(cart(("p1", 5))))

    assert response.status == "rejected"
    assert response.sold_count == 0
    line = response.lines[0]
    assert line.name == "Milk"
    assert line.error_code == "INSUFFICIENT_STOCK"
    assert line.error == "Insufficient stock. Only 2 unit(s) available"
    assert line.movement is None
