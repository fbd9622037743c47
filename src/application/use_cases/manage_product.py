"""Manage Product Use Case: lookup, create, update, delete and history."""

from src.application.dto.requests import CreateProductRequest, UpdateProductRequest
from src.application.dto.responses import StockMovementResponse
from src.application.services import get_backend, get_query_cache
from src.config import get_logger
from src.core.entities import Product, ProductDraft, ProductUpdate, StockMovement
from src.core.exceptions import DeleteConfirmationError, ProductNotFoundError
from src.core.interfaces import IBackendAdapter
from src.core.services import QueryCache
from src.core.services.pricing import with_tier_prices
from src.core.services.query_cache import PRODUCTS_KEY, history_key, product_key

logger = get_logger(__name__)


class ManageProductUseCase:
    """Product CRUD through the backend adapter, keeping the cache coherent."""

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

    def _invalidate_products(self) -> None:
        self.cache.invalidate(*PRODUCTS_KEY)
        self.cache.invalidate("product")

    async def get_by_barcode(self, barcode: str) -> Product:
        """
        Look up a product by exact barcode.

        Raises:
            ProductNotFoundError: no product carries this barcode
        """
        barcode = barcode.strip()
        product = await self.cache.fetch(
            product_key(barcode),
            lambda: self.backend.get_product_by_barcode(barcode),
        )
        if product is None:
            raise ProductNotFoundError(barcode)
        return product

    async def get(self, product_id: str) -> Product:
        products = await self.cache.fetch(PRODUCTS_KEY, self.backend.get_all_products)
        for product in products:
            if product.id == product_id:
                return product
        raise ProductNotFoundError(product_id)

    async def create(self, request: CreateProductRequest) -> Product:
        draft = with_tier_prices(ProductDraft.model_validate(request.model_dump()))
        product = await self.backend.create_product(draft)
        self._invalidate_products()
        logger.info("product_created", product_id=product.id, barcode=product.barcode)
        return product

    async def update(self, product_id: str, request: UpdateProductRequest) -> Product:
        update = ProductUpdate.model_validate(request.model_dump(exclude_unset=True))
        product = await self.backend.update_product(product_id, update)
        self._invalidate_products()
        logger.info("product_updated", product_id=product_id, fields=sorted(update.changes()))
        return product

    async def delete(self, product_id: str, confirm_name: str | None) -> None:
        """
        Delete a product after the caller typed its exact name.

        Raises:
            ProductNotFoundError: unknown product
            DeleteConfirmationError: typed name does not match
            ProductHasMovementsError: backend refuses to drop movement history
        """
        product = await self.get(product_id)
        if (confirm_name or "").strip() != product.name.strip():
            raise DeleteConfirmationError(product.name)

        await self.backend.delete_product(product_id)
        self._invalidate_products()
        self.cache.invalidate(*history_key(product_id))
        logger.info("product_deleted", product_id=product_id)

    async def movements(self, product_id: str) -> list[StockMovement]:
        """Most recent movements first, bounded by the backend history limit."""
        return await self.cache.fetch(
            history_key(product_id),
            lambda: self.backend.get_stock_movements(product_id),
        )

    @staticmethod
    def movement_to_response(movement: StockMovement) -> StockMovementResponse:
        return StockMovementResponse(
            id=movement.id,
            product_id=movement.product_id,
            quantity=movement.quantity,
            type=movement.type.value,
            date=movement.date,
            note=movement.note,
        )
