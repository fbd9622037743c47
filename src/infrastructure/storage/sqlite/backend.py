"""SQLite implementation of the backend adapter."""

import uuid
from datetime import date, datetime
from enum import Enum

import aiosqlite

from src.config import get_logger
from src.core.entities.product import (
    MovementType,
    Product,
    ProductDraft,
    ProductUpdate,
    StockMovement,
    signed_quantity,
)
from src.core.exceptions import DatabaseError, ProductNotFoundError
from src.core.interfaces.backend import IBackendAdapter
from src.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from src.infrastructure.storage.validation import (
    validate_draft,
    validate_movement,
    validate_product_id,
    validate_update,
)

logger = get_logger(__name__)

PRODUCT_COLUMNS = (
    "name",
    "barcode",
    "category",
    "price",
    "price_50",
    "price_70",
    "price_100",
    "markup",
    "min_stock_level",
    "ideal_stock",
    "supplier",
    "expiry_date",
    "image_url",
)

PRODUCT_SELECT = """
    SELECT p.*, COALESCE(SUM(m.quantity), 0) AS current_stock
    FROM products p
    LEFT JOIN stock_movements m ON m.product_id = p.id
"""


def _to_db(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class SQLiteBackend(IBackendAdapter):
    """Local product store. Stock is a SUM over stock_movements."""

    name = "sqlite"

    def __init__(self, pool: ConnectionPool | None = None, history_limit: int = 100):
        self._pool = pool
        self._history_limit = history_limit

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def get_product_by_barcode(self, barcode: str) -> Product | None:
        barcode = (barcode or "").strip()
        if not barcode:
            return None
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                cursor = await conn.execute(
                    PRODUCT_SELECT + " WHERE p.barcode = ? GROUP BY p.id LIMIT 1",
                    (barcode,),
                )
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise DatabaseError("get_product_by_barcode", str(e)) from e
        return self._row_to_product(row) if row else None

    async def get_product(self, product_id: str) -> Product | None:
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                PRODUCT_SELECT + " WHERE p.id = ? GROUP BY p.id",
                (product_id,),
            )
            row = await cursor.fetchone()
        return self._row_to_product(row) if row else None

    async def create_product(self, draft: ProductDraft) -> Product:
        values = validate_draft(draft)
        product_id = uuid.uuid4().hex
        columns = ["id", *PRODUCT_COLUMNS, "created_at"]
        params = [
            product_id,
            *(_to_db(values.get(col)) for col in PRODUCT_COLUMNS),
            datetime.now().isoformat(),
        ]
        pool = await self._get_pool()
        try:
            async with pool.transaction() as conn:
                await conn.execute(
                    f"INSERT INTO products ({', '.join(columns)}) "
                    f"VALUES ({', '.join('?' for _ in columns)})",
                    params,
                )
        except aiosqlite.Error as e:
            raise DatabaseError("create_product", str(e)) from e

        logger.info("product_created", product_id=product_id, name=values["name"])
        product = await self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def update_product(self, product_id: str, update: ProductUpdate) -> Product:
        changes = validate_update(product_id, update)
        pool = await self._get_pool()
        if changes:
            assignments = ", ".join(f"{col} = ?" for col in changes)
            params = [_to_db(v) for v in changes.values()]
            try:
                async with pool.transaction() as conn:
                    cursor = await conn.execute(
                        f"UPDATE products SET {assignments}, updated_at = ? WHERE id = ?",
                        (*params, datetime.now().isoformat(), product_id),
                    )
                    updated = cursor.rowcount
            except aiosqlite.Error as e:
                raise DatabaseError("update_product", str(e)) from e
            if updated == 0:
                raise ProductNotFoundError(product_id)

        product = await self.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        logger.info("product_updated", product_id=product_id, fields=sorted(changes))
        return product

    async def delete_product(self, product_id: str) -> None:
        validate_product_id(product_id)
        pool = await self._get_pool()
        try:
            async with pool.transaction() as conn:
                cursor = await conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
                deleted = cursor.rowcount
        except aiosqlite.Error as e:
            raise DatabaseError("delete_product", str(e)) from e
        if deleted == 0:
            raise ProductNotFoundError(product_id)
        logger.info("product_deleted", product_id=product_id)

    async def get_all_products(self) -> list[Product]:
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                cursor = await conn.execute(
                    PRODUCT_SELECT + " GROUP BY p.id ORDER BY p.name COLLATE NOCASE, p.id"
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DatabaseError("get_all_products", str(e)) from e
        return [self._row_to_product(row) for row in rows]

    async def add_stock_movement(
        self, product_id: str, quantity: int, movement_type: MovementType
    ) -> StockMovement:
        validate_movement(product_id, quantity, movement_type)
        movement = StockMovement(
            id=uuid.uuid4().hex,
            product_id=product_id,
            quantity=signed_quantity(int(quantity), movement_type),
            type=movement_type,
            date=date.today(),
        )
        pool = await self._get_pool()
        try:
            async with pool.transaction() as conn:
                await conn.execute(
                    """
                    INSERT INTO stock_movements (id, product_id, quantity, type, date, note)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        movement.id,
                        movement.product_id,
                        movement.quantity,
                        movement.type.value,
                        movement.date.isoformat(),
                        movement.note,
                    ),
                )
        except aiosqlite.IntegrityError as e:
            raise ProductNotFoundError(product_id) from e
        except aiosqlite.Error as e:
            raise DatabaseError("add_stock_movement", str(e)) from e

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
        pool = await self._get_pool()
        try:
            async with pool.acquire() as conn:
                cursor = await conn.execute(
                    """
                    SELECT * FROM stock_movements
                    WHERE product_id = ?
                    ORDER BY date DESC, created_at DESC, rowid DESC
                    LIMIT ?
                    """,
                    (product_id, self._history_limit),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise DatabaseError("get_stock_movements", str(e)) from e
        return [self._row_to_movement(row) for row in rows]

    async def check_health(self) -> bool:
        pool = await self._get_pool()
        try:
            return await pool.ping()
        except aiosqlite.Error as e:
            logger.warning("sqlite_health_check_failed", error=str(e))
            return False

    @staticmethod
    def _row_to_product(row: aiosqlite.Row) -> Product:
        """Convert a database row to a Product entity."""
        expiry_date = None
        if row["expiry_date"]:
            try:
                expiry_date = date.fromisoformat(row["expiry_date"][:10])
            except (ValueError, TypeError):
                pass

        created_at = None
        if row["created_at"]:
            try:
                created_at = datetime.fromisoformat(row["created_at"])
            except (ValueError, TypeError):
                pass

        return Product(
            id=row["id"],
            name=row["name"],
            barcode=row["barcode"],
            category=row["category"],
            price=row["price"],
            price_50=row["price_50"],
            price_70=row["price_70"],
            price_100=row["price_100"],
            markup=row["markup"],
            min_stock_level=row["min_stock_level"],
            ideal_stock=row["ideal_stock"],
            current_stock=row["current_stock"],
            supplier=row["supplier"],
            expiry_date=expiry_date,
            image_url=row["image_url"],
            created_at=created_at,
        )

    @staticmethod
    def _row_to_movement(row: aiosqlite.Row) -> StockMovement:
        """Convert a database row to a StockMovement entity."""
        movement_date = date.today()
        if row["date"]:
            try:
                movement_date = date.fromisoformat(row["date"][:10])
            except (ValueError, TypeError):
                pass

        return StockMovement(
            id=row["id"],
            product_id=row["product_id"],
            quantity=row["quantity"],
            type=MovementType(row["type"]),
            date=movement_date,
            note=row["note"],
        )
