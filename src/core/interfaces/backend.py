"""Abstract interface for the product and stock movement backend."""

from abc import ABC, abstractmethod

from src.core.entities.product import (
    MovementType,
    Product,
    ProductDraft,
    ProductUpdate,
    StockMovement,
)


class IBackendAdapter(ABC):
    """
    Uniform CRUD surface over the product store.

    Implementations: SQLiteBackend, AirtableBackend, SupabaseBackend
    """

    name: str = "backend"

    @abstractmethod
    async def get_product_by_barcode(self, barcode: str) -> Product | None:
        """Find a product by exact barcode."""
        pass

    @abstractmethod
    async def create_product(self, draft: ProductDraft) -> Product:
        """Create a product. Stock starts at 0."""
        pass

    @abstractmethod
    async def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        """Apply the fields set on ``update`` and return the stored product."""
        pass

    @abstractmethod
    async def delete_product(self, product_id: str) -> None:
        """Delete a product."""
        pass

    @abstractmethod
    async def get_all_products(self) -> list[Product]:
        """All products ordered by name, with derived current stock."""
        pass

    @abstractmethod
    async def add_stock_movement(
        self, product_id: str, quantity: int, movement_type: MovementType
    ) -> StockMovement:
        """Record one movement. ``quantity`` is positive; the sign comes from the type."""
        pass

    @abstractmethod
    async def get_stock_movements(self, product_id: str) -> list[StockMovement]:
        """Movements for a product, most recent first, bounded."""
        pass

    @abstractmethod
    async def check_health(self) -> bool:
        """Whether the backend is reachable."""
        pass
