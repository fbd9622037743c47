"""Supabase implementation of the backend adapter (PostgREST via httpx)."""

from collections import defaultdict
from datetime import date
from enum import Enum
from typing import Any

import httpx

from src.config import get_logger
from src.config.settings import SupabaseSettings
from src.core.entities.product import (
    MovementType,
    Product,
    ProductDraft,
    ProductUpdate,
    StockMovement,
    signed_quantity,
)
from src.core.exceptions import BackendError, ProductHasMovementsError, ProductNotFoundError
from src.core.interfaces.backend import IBackendAdapter
from src.infrastructure.storage.remote.base import HTTPBackendBase
from src.infrastructure.storage.validation import (
    validate_draft,
    validate_movement,
    validate_product_id,
    validate_update,
)

logger = get_logger(__name__)

FOREIGN_KEY_VIOLATION = "23503"
RETURN_ROWS = {"Prefer": "return=representation"}


def _to_row(values: dict[str, Any]) -> dict[str, Any]:
    row = {}
    for key, value in values.items():
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        elif isinstance(value, str) and key != "name":
            value = value or None
        row[key] = value
    return row


class SupabaseBackend(HTTPBackendBase, IBackendAdapter):
    """
    Products and movements in Postgres, reached through PostgREST.

    Current stock is the sum of the product's stock_movements rows.
    """

    name = "supabase"

    def __init__(
        self,
        settings: SupabaseSettings,
        timeout: float = 15.0,
        history_limit: int = 100,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            base_url=f"{settings.url.rstrip('/')}/rest/v1",
            headers={
                "apikey": settings.service_key,
                "Authorization": f"Bearer {settings.service_key}",
            },
            timeout=timeout,
            client=client,
        )
        self._products = f"/{settings.products_table}"
        self._movements = f"/{settings.movements_table}"
        self._history_limit = history_limit

    async def _stock_level(self, product_id: str) -> float:
        response = await self._request(
            "GET",
            self._movements,
            "calculate_stock_level",
            params={"select": "quantity", "product_id": f"eq.{product_id}"},
        )
        return sum(row.get("quantity") or 0 for row in response.json())

    async def get_product_by_barcode(self, barcode: str) -> Product | None:
        barcode = (barcode or "").strip()
        if not barcode:
            return None
        response = await self._request(
            "GET",
            self._products,
            "get_product_by_barcode",
            params={"select": "*", "barcode": f"eq.{barcode}", "limit": 1},
        )
        rows = response.json()
        if not rows:
            logger.info("product_not_found_by_barcode", barcode=barcode)
            return None
        row = rows[0]
        return self._row_to_product(row, await self._stock_level(row["id"]))

    async def create_product(self, draft: ProductDraft) -> Product:
        values = validate_draft(draft)
        response = await self._request(
            "POST",
            self._products,
            "create_product",
            json=_to_row(values),
            headers=RETURN_ROWS,
        )
        product = self._row_to_product(response.json()[0], 0)
        logger.info("product_created", product_id=product.id, name=product.name)
        return product

    async def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        changes = validate_update(product_id, update)
        response = await self._request(
            "PATCH",
            self._products,
            "update_product",
            params={"id": f"eq.{product_id}"},
            json=_to_row(changes),
            headers=RETURN_ROWS,
        )
        rows = response.json()
        if not rows:
            raise ProductNotFoundError(product_id)
        logger.info("product_updated", product_id=product_id, fields=sorted(changes))
        return self._row_to_product(rows[0], await self._stock_level(product_id))

    async def delete_product(self, product_id: str) -> None:
        validate_product_id(product_id)
        try:
            response = await self._request(
                "DELETE",
                self._products,
                "delete_product",
                params={"id": f"eq.{product_id}"},
                headers=RETURN_ROWS,
            )
        except BackendError as e:
            if e.details.get("backend_code") == FOREIGN_KEY_VIOLATION:
                raise ProductHasMovementsError(product_id) from e
            raise
        if not response.json():
            raise ProductNotFoundError(product_id)
        logger.info("product_deleted", product_id=product_id)

    async def get_all_products(self) -> list[Product]:
        products_response = await self._request(
            "GET",
            self._products,
            "get_all_products",
            params={"select": "*", "order": "name.asc"},
        )
        movements_response = await self._request(
            "GET",
            self._movements,
            "get_all_products",
            params={"select": "product_id,quantity"},
        )

        levels: dict[str, float] = defaultdict(float)
        for movement in movements_response.json():
            levels[str(movement["product_id"])] += movement.get("quantity") or 0

        rows = products_response.json()
        logger.info("products_fetched", count=len(rows))
        return [self._row_to_product(row, levels.get(str(row["id"]), 0)) for row in rows]

    async def add_stock_movement(
        self, product_id: str, quantity: int, movement_type: MovementType
    ) -> StockMovement:
        validate_movement(product_id, quantity, movement_type)
        row = {
            "product_id": product_id,
            "quantity": signed_quantity(int(quantity), movement_type),
            "type": movement_type.value,
            "date": date.today().isoformat(),
        }
        try:
            response = await self._request(
                "POST",
                self._movements,
                "add_stock_movement",
                json=row,
                headers=RETURN_ROWS,
            )
        except BackendError as e:
            if e.details.get("backend_code") == FOREIGN_KEY_VIOLATION:
                raise ProductNotFoundError(product_id) from e
            raise

        movement = self._row_to_movement(response.json()[0])
        logger.info(
            "stock_movement_recorded",
            movement_id=movement.id,
            product_id=product_id,
            type=movement_type.value,
            qty=movement.quantity,
        )
        return movement

    async def get_stock_movements(self, product_id: str) -> list[StockMovement]:
        validate_product_id(product_id)
        response = await self._request(
            "GET",
            self._movements,
            "get_stock_movements",
            params={
                "select": "*",
                "product_id": f"eq.{product_id}",
                "order": "date.desc,created_at.desc",
                "limit": self._history_limit,
            },
        )
        return [self._row_to_movement(row) for row in response.json()]

    async def check_health(self) -> bool:
        try:
            await self._request(
                "GET", self._products, "check_health", params={"select": "id", "limit": 1}
            )
        except BackendError as e:
            logger.warning("supabase_health_check_failed", error=str(e))
            return False
        return True

    @staticmethod
    def _row_to_product(row: dict[str, Any], current_stock: float) -> Product:
        """Convert a products row to a Product entity."""
        return Product(
            id=row["id"],
            name=row["name"],
            barcode=row.get("barcode"),
            category=row.get("category"),
            price=row.get("price"),
            price_50=row.get("price_50"),
            price_70=row.get("price_70"),
            price_100=row.get("price_100"),
            markup=row.get("markup"),
            min_stock_level=row.get("min_stock_level"),
            ideal_stock=row.get("ideal_stock"),
            current_stock=current_stock,
            supplier=row.get("supplier"),
            expiry_date=row.get("expiry_date"),
            image_url=row.get("image_url"),
            created_at=row.get("created_at"),
        )

    @staticmethod
    def _row_to_movement(row: dict[str, Any]) -> StockMovement:
        """Convert a stock_movements row to a StockMovement entity."""
        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            quantity=row["quantity"],
            type=MovementType(row["type"]),
            date=row.get("date") or date.today(),
            note=row.get("note"),
        )
