"""Tests for ListInventoryUseCase and ExportInventoryUseCase."""

import asyncio
from io import BytesIO

from openpyxl import load_workbook

from src.application.use_cases import ExportInventoryUseCase, ListInventoryUseCase
from src.core.entities import InventoryFilters, MovementType, SortDirection, SortField
from src.core.services import InventoryListEngine, MutationStatus, StockMutationEngine


async def test_list_applies_filters(backend, cache):
    use_case = ListInventoryUseCase(InventoryListEngine(backend, cache))

    view = await use_case.execute(InventoryFilters(low_stock_only=True))
    response = use_case.to_response(view)

    assert [p.name for p in response.products] == ["Milk"]
    assert response.total_products == 2
    assert response.filtered_count == 1
    assert response.has_active_filters
    assert response.products[0].is_low_stock
    assert response.products[0].display_price == 2.04


async def test_list_resets_previous_filters(backend, cache):
    use_case = ListInventoryUseCase(InventoryListEngine(backend, cache))
    await use_case.execute(InventoryFilters(category="Dairy"))

    view = await use_case.execute(
        InventoryFilters(sort_field=SortField.STOCK, sort_direction=SortDirection.DESC)
    )

    assert [p.name for p in view.products] == ["Bread", "Milk"]
    assert backend.count("get_all_products") == 1


async def test_list_reports_products_with_stock_change_in_flight(backend, cache):
    stock_engine = StockMutationEngine(backend, cache)
    use_case = ListInventoryUseCase(InventoryListEngine(backend, cache), stock_engine)
    release = asyncio.Event()
    add_movement = backend.add_stock_movement

    async def slow_add(*args):
        await release.wait()
        return await add_movement(*args)

    backend.add_stock_movement = slow_add
    pending = asyncio.create_task(stock_engine.adjust_stock("p1", 1, MovementType.IN))
    while not stock_engine.is_loading("p1") and not pending.done():
        await asyncio.sleep(0)

    during = use_case.to_response(await use_case.execute())
    release.set()
    result = await pending
    after = await use_case.execute()

    assert during.loading_ids == ["p1"]
    assert result.status == MutationStatus.CONFIRMED
    assert after.loading_ids == []


async def test_low_stock_alerts(backend, cache):
    use_case = ListInventoryUseCase(InventoryListEngine(backend, cache))

    alerts = ListInventoryUseCase.alerts_to_response(await use_case.low_stock())

    assert len(alerts) == 1
    assert alerts[0].product_id == "p1"
    assert alerts[0].deficit == 3


async def test_export(backend, cache):
    result = await ExportInventoryUseCase(InventoryListEngine(backend, cache)).execute()

    assert result.product_count == 2
    assert result.filename.startswith("inventory-")
    rows = list(load_workbook(BytesIO(result.content)).active.iter_rows(values_only=True))
    assert [row[1] for row in rows[1:]] == ["Bread", "Milk"]
