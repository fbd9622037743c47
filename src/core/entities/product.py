"""Product and stock movement domain entities."""

import datetime as dt
import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class MovementType(str, Enum):
    """Direction of a stock movement."""

    IN = "IN"
    OUT = "OUT"


class MarkupTier(int, Enum):
    """Store price tier as a percentage over the base price."""

    LOW = 50
    STANDARD = 70
    HIGH = 100


DEFAULT_MARKUP = MarkupTier.STANDARD


def _coerce_loose_number(v: Any) -> Any:
    """Let malformed numeric strings through as NaN instead of failing validation."""
    if isinstance(v, str):
        text = v.strip()
        if not text:
            return None
        try:
            return float(text.replace(",", "."))
        except ValueError:
            return math.nan
    return v


class Product(BaseModel):
    """
    A stocked product.

    current_stock is derived by the backend as the signed sum of the product's
    movements. It is never written by clients and may arrive malformed, so
    consumers sanitize it before comparing.
    """

    id: str
    name: str
    barcode: str | None = None
    category: str | None = None
    price: float | None = None
    price_50: float | None = None
    price_70: float | None = None
    price_100: float | None = None
    markup: MarkupTier | None = None
    min_stock_level: float | None = None
    ideal_stock: float | None = None
    current_stock: float | None = 0.0
    supplier: str | None = None
    expiry_date: dt.date | None = None
    image_url: str | None = None
    created_at: dt.datetime | None = None

    @field_validator(
        "price",
        "price_50",
        "price_70",
        "price_100",
        "min_stock_level",
        "ideal_stock",
        "current_stock",
        mode="before",
    )
    @classmethod
    def coerce_numbers(cls, v: Any) -> Any:
        return _coerce_loose_number(v)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class ProductDraft(BaseModel):
    """Fields accepted when creating a product."""

    name: str
    barcode: str | None = None
    category: str | None = None
    price: float | None = None
    price_50: float | None = None
    price_70: float | None = None
    price_100: float | None = None
    markup: MarkupTier | None = None
    min_stock_level: int | None = Field(default=None, ge=0)
    ideal_stock: int | None = Field(default=None, ge=0)
    supplier: str | None = None
    expiry_date: dt.date | None = None
    image_url: str | None = None


class ProductUpdate(BaseModel):
    """Partial product update. Only explicitly set fields are sent."""

    name: str | None = None
    barcode: str | None = None
    category: str | None = None
    price: float | None = None
    price_50: float | None = None
    price_70: float | None = None
    price_100: float | None = None
    markup: MarkupTier | None = None
    min_stock_level: int | None = Field(default=None, ge=0)
    ideal_stock: int | None = Field(default=None, ge=0)
    supplier: str | None = None
    expiry_date: dt.date | None = None
    image_url: str | None = None

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually set."""
        return self.model_dump(exclude_unset=True)


class StockMovement(BaseModel):
    """An immutable signed stock event. IN is positive, OUT is negative."""

    id: str
    product_id: str
    quantity: int
    type: MovementType
    date: dt.date = Field(default_factory=dt.date.today)
    note: str | None = None

    @field_validator("id", "product_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


def signed_quantity(quantity: int, movement_type: MovementType) -> int:
    """Encode a movement quantity with the sign of its direction."""
    return abs(quantity) if movement_type == MovementType.IN else -abs(quantity)
