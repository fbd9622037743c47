"""End-to-end inventory flows on a real SQLite database."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from src.core.entities import (
    ImportedProduct,
    InventoryFilters,
    MovementType,
    SortField,
)
from src.core.exceptions import InsufficientStockError
from src.core.services import (
    ImportReconciler,
    InventoryListEngine,
    MutationStatus,
    QueryCache,
    StockMutationEngine,
)
from src.infrastructure.parsers import export_inventory_workbook, parse_spreadsheet
from src.infrastructure.storage.sqlite import ConnectionPool, SQLiteBackend
from src.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
async def sqlite_store(tmp_path: Path) -> AsyncGenerator[SQLiteBackend, None]:
    db_path = tmp_path / "flow.db"
    await initialize_database(db_path, create_backup_before=False)
    pool = ConnectionPool(db_path, pool_size=2)
    yield SQLiteBackend(pool)
    await pool.close()


@pytest.fixture
def shared_cache() -> QueryCache:
    return QueryCache(stale_time=300)


async def test_import_adjust_list_export(sqlite_store, shared_cache):
    reconciler = ImportReconciler(sqlite_store, shared_cache)
    stock = StockMutationEngine(sqlite_store, shared_cache)
    listing = InventoryListEngine(sqlite_store, shared_cache)

    report = await reconciler.reconcile(
        [
            ImportedProduct(name="Milk", barcode="5941234567890", price=1.2, current_stock=3, min_stock=5),
            ImportedProduct(name="Bread", barcode="5940000000012", price=0.8, current_stock=10),
            ImportedProduct(name="Milk copy", barcode="5941234567890"),
        ]
    )
    assert report.summary == "2 imported, 1 skipped (duplicate barcode), 0 failed"

    view = await listing.view()
    assert [(p.name, p.current_stock) for p in view.products] == [("Bread", 10), ("Milk", 3)]
    assert view.low_stock_count == 1

    milk = next(p for p in view.products if p.name == "Milk")
    result = await stock.adjust_stock(milk.id, 4, MovementType.IN)
    assert result.status == MutationStatus.CONFIRMED

    listing.update_filter("low_stock_only", True)
    assert (await listing.view()).products == []

    rejected = await stock.adjust_stock(milk.id, 8, MovementType.OUT)
    assert rejected.status == MutationStatus.REJECTED
    assert isinstance(rejected.error, InsufficientStockError)

    history = await sqlite_store.get_stock_movements(milk.id)
    assert [m.quantity for m in history] == [4, 3]

    listing.reset_filters()
    products = (await listing.view()).products
    reparsed = parse_spreadsheet(export_inventory_workbook(products))
    assert [(p.name, p.current_stock) for p in reparsed.products] == [("Bread", 10), ("Milk", 7)]


async def test_reimport_of_export_skips_everything(sqlite_store, shared_cache):
    reconciler = ImportReconciler(sqlite_store, shared_cache)
    await reconciler.reconcile(
        [
            ImportedProduct(name="Tea", barcode="42"),
            ImportedProduct(name="Coffee", barcode="43"),
        ]
    )
    listing = InventoryListEngine(sqlite_store, shared_cache)
    exported = export_inventory_workbook((await listing.view()).products)

    report = await reconciler.reconcile(parse_spreadsheet(exported).products)

    assert report.skipped == 2
    assert report.succeeded == 0
    assert len(await sqlite_store.get_all_products()) == 2


async def test_sort_by_price_with_missing_prices(sqlite_store, shared_cache):
    reconciler = ImportReconciler(sqlite_store, shared_cache)
    await reconciler.reconcile(
        [
            ImportedProduct(name="A", price=3.0),
            ImportedProduct(name="B"),
            ImportedProduct(name="C", price=1.0),
        ]
    )
    listing = InventoryListEngine(sqlite_store, shared_cache)

    for key, value in InventoryFilters(sort_field=SortField.PRICE).model_dump().items():
        listing.update_filter(key, value)
    view = await listing.view()

    assert [p.name for p in view.products] == ["B", "C", "A"]
