"""Airtable implementation of the backend adapter (REST API via httpx)."""

from datetime import date
from enum import Enum
from typing import Any
from urllib.parse import quote

import httpx

from src.config import get_logger
from src.config.settings import AirtableSettings
from src.core.entities.product import (
    MovementType,
    Product,
    ProductDraft,
    ProductUpdate,
    StockMovement,
    signed_quantity,
)
from src.core.exceptions import BackendError, ProductNotFoundError
from src.core.interfaces.backend import IBackendAdapter
from src.infrastructure.storage.remote.base import HTTPBackendBase
from src.infrastructure.storage.validation import (
    validate_draft,
    validate_movement,
    validate_product_id,
    validate_update,
)

logger = get_logger(__name__)

# Product attribute -> Airtable column
FIELD_MAP = {
    "name": "Name",
    "barcode": "Barcode",
    "category": "Category",
    "price": "Price",
    "price_50": "Price 50%",
    "price_70": "Price 70%",
    "price_100": "Price 100%",
    "markup": "Markup",
    "expiry_date": "Expiry Date",
    "min_stock_level": "Min Stock Level",
    "ideal_stock": "Ideal Stock",
    "supplier": "Supplier",
}

PAGE_SIZE = 100


def escape_formula_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _to_airtable(values: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {}
    for key, value in values.items():
        if key == "image_url":
            fields["Image"] = [{"url": value}] if value else []
            continue
        column = FIELD_MAP.get(key)
        if column is None:
            continue
        if isinstance(value, date):
            value = value.isoformat()
        elif isinstance(value, Enum):
            value = value.value
        fields[column] = value
    return fields


class AirtableBackend(HTTPBackendBase, IBackendAdapter):
    """
    Products and movements stored in two Airtable tables.

    Current stock comes from the "Current Stock Level" rollup on the
    products table.
    """

    name = "airtable"

    def __init__(
        self,
        settings: AirtableSettings,
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            base_url=f"{settings.api_url.rstrip('/')}/{settings.base_id}",
            headers={"Authorization": f"Bearer {settings.api_key}"},
            timeout=timeout,
            client=client,
        )
        self._products = quote(settings.products_table)
        self._movements = quote(settings.movements_table)
        self._history_limit = settings.history_limit

    async def get_product_by_barcode(self, barcode: str) -> Product | None:
        barcode = (barcode or "").strip()
        if not barcode:
            return None
        response = await self._request(
            "GET",
            f"/{self._products}",
            "get_product_by_barcode",
            params={
                "filterByFormula": f"({{Barcode}} = '{escape_formula_string(barcode)}')",
                "maxRecords": 1,
            },
        )
        records = response.json().get("records", [])
        if not records:
            logger.info("product_not_found_by_barcode", barcode=barcode)
            return None
        return self._record_to_product(records[0])

    async def create_product(self, draft: ProductDraft) -> Product:
        values = validate_draft(draft)
        fields = {k: v for k, v in _to_airtable(values).items() if v not in (None, [])}
        response = await self._request(
            "POST",
            f"/{self._products}",
            "create_product",
            json={"records": [{"fields": fields}], "typecast": True},
        )
        product = self._record_to_product(response.json()["records"][0])
        logger.info("product_created", product_id=product.id, name=product.name)
        return product

    async def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        changes = validate_update(product_id, update)
        response = await self._send_for_record(
            "PATCH",
            product_id,
            "update_product",
            json={"fields": _to_airtable(changes), "typecast": True},
        )
        logger.info("product_updated", product_id=product_id, fields=sorted(changes))
        return self._record_to_product(response.json())

    async def delete_product(self, product_id: str) -> None:
        validate_product_id(product_id)
        await self._send_for_record("DELETE", product_id, "delete_product")
        logger.info("product_deleted", product_id=product_id)

    async def _send_for_record(
        self, method: str, product_id: str, operation: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            return await self._request(
                method, f"/{self._products}/{quote(product_id)}", operation, **kwargs
            )
        except BackendError as e:
            if e.details.get("status_code") == 404:
                raise ProductNotFoundError(product_id) from e
            raise

    async def get_all_products(self) -> list[Product]:
        products: list[Product] = []
        params: dict[str, Any] = {
            "pageSize": PAGE_SIZE,
            "sort[0][field]": "Name",
            "sort[0][direction]": "asc",
        }
        while True:
            response = await self._request(
                "GET", f"/{self._products}", "get_all_products", params=params
            )
            body = response.json()
            for record in body.get("records", []):
                if not isinstance(record.get("fields", {}).get("Name"), str):
                    logger.warning("airtable_record_without_name", record_id=record.get("id"))
                    continue
                products.append(self._record_to_product(record))
            offset = body.get("offset")
            if not offset:
                break
            params["offset"] = offset

        logger.info("products_fetched", count=len(products))
        return products

    async def add_stock_movement(
        self, product_id: str, quantity: int, movement_type: MovementType
    ) -> StockMovement:
        validate_movement(product_id, quantity, movement_type)
        fields = {
            "Product": [product_id],
            "Quantity": signed_quantity(int(quantity), movement_type),
            "Type": movement_type.value,
            "Date": date.today().isoformat(),
        }
        response = await self._request(
            "POST",
            f"/{self._movements}",
            "add_stock_movement",
            json={"records": [{"fields": fields}], "typecast": True},
        )
        movement = self._record_to_movement(response.json()["records"][0], product_id)
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
        params: dict[str, Any] = {
            "pageSize": PAGE_SIZE,
            "sort[0][field]": "Date",
            "sort[0][direction]": "desc",
        }
        # Linked-record formulas match primary field values, not ids, so page
        # newest first and filter here until the history limit is reached
        matching: list[dict[str, Any]] = []
        while len(matching) < self._history_limit:
            response = await self._request(
                "GET", f"/{self._movements}", "get_stock_movements", params=params
            )
            body = response.json()
            matching.extend(
                record
                for record in body.get("records", [])
                if product_id in (record.get("fields", {}).get("Product") or [])
            )
            offset = body.get("offset")
            if not offset:
                break
            params["offset"] = offset

        return [
            self._record_to_movement(record, product_id)
            for record in matching[: self._history_limit]
        ]

    async def check_health(self) -> bool:
        try:
            await self._request(
                "GET", f"/{self._products}", "check_health", params={"maxRecords": 1}
            )
        except BackendError as e:
            logger.warning("airtable_health_check_failed", error=str(e))
            return False
        return True

    @staticmethod
    def _record_to_product(record: dict[str, Any]) -> Product:
        """Convert an Airtable record to a Product entity."""
        fields = record.get("fields", {})
        image = fields.get("Image")
        image_url = image[0].get("url") if isinstance(image, list) and image else None
        markup = fields.get("Markup")
        expiry = fields.get("Expiry Date")

        return Product(
            id=record["id"],
            name=fields.get("Name", ""),
            barcode=fields.get("Barcode"),
            category=fields.get("Category"),
            price=fields.get("Price"),
            price_50=fields.get("Price 50%"),
            price_70=fields.get("Price 70%"),
            price_100=fields.get("Price 100%"),
            markup=int(markup) if markup in (50, 70, 100, "50", "70", "100") else None,
            min_stock_level=fields.get("Min Stock Level"),
            ideal_stock=fields.get("Ideal Stock"),
            current_stock=fields.get("Current Stock Level"),
            supplier=fields.get("Supplier"),
            expiry_date=expiry[:10] if isinstance(expiry, str) and expiry else None,
            image_url=image_url,
            created_at=record.get("createdTime"),
        )

    @staticmethod
    def _record_to_movement(record: dict[str, Any], product_id: str) -> StockMovement:
        """Convert an Airtable record to a StockMovement entity."""
        fields = record.get("fields", {})
        quantity = int(fields.get("Quantity") or 0)
        raw_type = str(fields.get("Type") or "").upper()
        movement_type = (
            MovementType(raw_type)
            if raw_type in ("IN", "OUT")
            else (MovementType.IN if quantity >= 0 else MovementType.OUT)
        )
        movement_date = fields.get("Date")
        return StockMovement(
            id=record["id"],
            product_id=product_id,
            quantity=quantity,
            type=movement_type,
            date=movement_date[:10] if movement_date else date.today(),
            note=fields.get("Note"),
        )
