"""Request DTOs for API endpoints.

Pydantic v2 models for API request validation.
These are the ONLY contracts between API and use cases.
"""

from datetime import date

from pydantic import BaseModel, Field

from src.core.entities import ImportedProduct, MarkupTier, MovementType


class CreateProductRequest(BaseModel):
    """Request to create a product. Stock starts at zero."""

    name: str = Field(..., description="Product name", examples=["Milk 1L"])
    barcode: str | None = Field(
        default=None,
        description="EAN/UPC barcode",
        examples=["5941234567890"],
    )
    category: str | None = Field(default=None, description="Category name")
    price: float | None = Field(default=None, description="Base (purchase) price")
    price_50: float | None = Field(default=None, description="Store price at 50% markup")
    price_70: float | None = Field(default=None, description="Store price at 70% markup")
    price_100: float | None = Field(default=None, description="Store price at 100% markup")
    markup: MarkupTier | None = Field(default=None, description="Selected markup tier")
    min_stock_level: int | None = Field(default=None, ge=0, description="Reorder point")
    ideal_stock: int | None = Field(default=None, ge=0, description="Target stock")
    supplier: str | None = Field(default=None, description="Supplier name")
    expiry_date: date | None = Field(default=None, description="Expiry date")
    image_url: str | None = Field(default=None, description="Product image URL")


class UpdateProductRequest(BaseModel):
    """Partial product update. Omitted fields are left unchanged."""

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
    expiry_date: date | None = None
    image_url: str | None = None


class AdjustStockRequest(BaseModel):
    """Request to record one stock movement.

    Quantity is validated by the stock engine so that fractional or
    non-positive values produce a domain error rather than a schema error.
    """

    quantity: int | float = Field(..., description="Units to move", examples=[5])
    type: MovementType = Field(..., description="IN or OUT")
    confirmed: bool = Field(
        default=False,
        description="Approve quantities above the large-change threshold",
    )


class QuickAdjustRequest(BaseModel):
    """Signed +/- stock change from the list view."""

    delta: int | float = Field(..., description="Positive adds, negative removes", examples=[1, -1])
    confirmed: bool = Field(default=False)


class CartItemRequest(BaseModel):
    """One scanned product in the checkout cart."""

    product_id: str = Field(..., min_length=1, description="Product ID")
    quantity: int | float = Field(default=1, description="Units sold", examples=[1])


class CheckoutRequest(BaseModel):
    """A cart to mark as paid. Repeated products are merged."""

    items: list[CartItemRequest] = Field(..., min_length=1, description="Cart lines")


class ImportRowsRequest(BaseModel):
    """Rows confirmed by the user after a preview."""

    rows: list[ImportedProduct] = Field(..., description="Rows to import")
