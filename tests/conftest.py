"""Pytest configuration and fixtures."""

import uuid
from collections.abc import AsyncGenerator, Generator
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from src.application.services import reset_services
from src.config import reset_settings
from src.core.entities import (
    MovementType,
    Product,
    ProductDraft,
    ProductUpdate,
    StockMovement,
    signed_quantity,
)
from src.core.exceptions import ProductNotFoundError
from src.core.interfaces import IBackendAdapter
from src.core.services import QueryCache


class InMemoryBackend(IBackendAdapter):
    """
    Backend adapter over a dict, recording every call.

    Set ``failures[operation]`` to an exception to make that operation raise.
    """

    name = "memory"

    def __init__(self, products: list[Product] | None = None):
        self.products: dict[str, Product] = {p.id: p for p in products or []}
        self.movements: list[StockMovement] = []
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}

    def count(self, operation: str) -> int:
        return self.calls.count(operation)

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures[operation]

    async def get_product_by_barcode(self, barcode: str) -> Product | None:
        self._call("get_product_by_barcode")
        return next(
            (p.model_copy() for p in self.products.values() if p.barcode == barcode),
            None,
        )

    async def create_product(self, draft: ProductDraft) -> Product:
        self._call("create_product")
        product = Product(id=uuid.uuid4().hex[:8], current_stock=0, **draft.model_dump())
        self.products[product.id] = product
        return product.model_copy()

    async def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        self._call("update_product")
        if product_id not in self.products:
            raise ProductNotFoundError(product_id)
        product = self.products[product_id].model_copy(update=update.changes())
        self.products[product_id] = product
        return product.model_copy()

    async def delete_product(self, product_id: str) -> None:
        self._call("delete_product")
        if self.products.pop(product_id, None) is None:
            raise ProductNotFoundError(product_id)
        self.movements = [m for m in self.movements if m.product_id != product_id]

    async def get_all_products(self) -> list[Product]:
        self._call("get_all_products")
        return sorted(
            (p.model_copy() for p in self.products.values()),
            key=lambda p: p.name.lower(),
        )

    async def add_stock_movement(
        self, product_id: str, quantity: int, movement_type: MovementType
    ) -> StockMovement:
        self._call("add_stock_movement")
        if product_id not in self.products:
            raise ProductNotFoundError(product_id)
        movement = StockMovement(
            id=f"mov-{len(self.movements) + 1}",
            product_id=product_id,
            quantity=signed_quantity(quantity, movement_type),
            type=movement_type,
            date=date.today(),
        )
        self.movements.insert(0, movement)
        product = self.products[product_id]
        self.products[product_id] = product.model_copy(
            update={"current_stock": (product.current_stock or 0) + movement.quantity}
        )
        return movement

    async def get_stock_movements(self, product_id: str) -> list[StockMovement]:
        self._call("get_stock_movements")
        return [m for m in self.movements if m.product_id == product_id]

    async def check_health(self) -> bool:
        self._call("check_health")
        return True


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Fresh settings and service singletons for every test."""
    reset_settings()
    reset_services()
    yield
    reset_services()
    reset_settings()


@pytest.fixture
def milk() -> Product:
    return Product(
        id="p1",
        name="Milk",
        barcode="5941234567890",
        category="Dairy",
        price=1.2,
        price_70=2.04,
        current_stock=2,
        min_stock_level=5,
    )


@pytest.fixture
def bread() -> Product:
    return Product(
        id="p2",
        name="Bread",
        barcode="5940000000012",
        category="Bakery",
        price=0.8,
        current_stock=10,
        min_stock_level=0,
    )


@pytest.fixture
def backend(milk: Product, bread: Product) -> InMemoryBackend:
    """In-memory backend seeded with Milk and Bread."""
    return InMemoryBackend([milk, bread])


@pytest.fixture
def empty_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def cache() -> QueryCache:
    return QueryCache(stale_time=300)


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async client against the real app. Overrides are cleared afterwards."""
    from src.api.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def make_backend():
    """Factory for an in-memory backend with custom products."""
    return InMemoryBackend


@pytest.fixture
def wire_app(backend: InMemoryBackend, cache: QueryCache):
    """
    Point every API dependency at the in-memory backend and a private cache.

    Returns the app so tests can add further overrides.
    """
    from src.api import dependencies
    from src.api.main import app
    from src.application.use_cases import (
        AdjustStockUseCase,
        CheckoutUseCase,
        ExportInventoryUseCase,
        ImportRowsUseCase,
        ImportSpreadsheetUseCase,
        ListInventoryUseCase,
        ManageProductUseCase,
    )
    from src.core.services import ImportReconciler, InventoryListEngine, StockMutationEngine

    stock_engine = StockMutationEngine(backend, cache)
    import_rows = ImportRowsUseCase(ImportReconciler(backend, cache))

    overrides = {
        dependencies.get_backend_adapter: lambda: backend,
        dependencies.get_cache: lambda: cache,
        dependencies.get_list_inventory_use_case: lambda: ListInventoryUseCase(
            InventoryListEngine(backend, cache), stock_engine
        ),
        dependencies.get_manage_product_use_case: lambda: ManageProductUseCase(backend, cache),
        dependencies.get_adjust_stock_use_case: lambda: AdjustStockUseCase(stock_engine),
        dependencies.get_checkout_use_case: lambda: CheckoutUseCase(backend, cache),
        dependencies.get_import_rows_use_case: lambda: import_rows,
        dependencies.get_import_spreadsheet_use_case: lambda: ImportSpreadsheetUseCase(
            import_rows=import_rows
        ),
        dependencies.get_export_inventory_use_case: lambda: ExportInventoryUseCase(
            InventoryListEngine(backend, cache)
        ),
    }
    app.dependency_overrides.update(overrides)
    yield app
    app.dependency_overrides.clear()
