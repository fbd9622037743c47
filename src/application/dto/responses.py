"""Response DTOs for API endpoints.

Pydantic v2 models for API response serialization.
These are the ONLY contracts between use cases and API layer.
"""

import datetime as dt

from pydantic import BaseModel, Field

from src.core.entities import (
    InventoryFilters,
    InvoiceData,
    SpreadsheetParseResult,
)


class ProductResponse(BaseModel):
    """Product as shown in the inventory list."""

    id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    barcode: str | None = Field(default=None, description="EAN/UPC barcode")
    category: str | None = None
    price: float | None = Field(default=None, description="Base (purchase) price")
    price_50: float | None = None
    price_70: float | None = None
    price_100: float | None = None
    markup: int | None = Field(default=None, description="Selected markup tier")
    display_price: float | None = Field(
        default=None, description="Store price for the selected markup tier"
    )
    min_stock_level: float | None = None
    ideal_stock: float | None = None
    current_stock: float = Field(..., description="Stock on hand (sanitized)")
    is_low_stock: bool = Field(..., description="Stock below a positive reorder point")
    supplier: str | None = None
    expiry_date: dt.date | None = None
    image_url: str | None = None
    created_at: dt.datetime | None = None


class ProductListResponse(BaseModel):
    """Filtered, sorted inventory view."""

    products: list[ProductResponse]
    total_products: int = Field(..., description="Products in the unfiltered collection")
    filtered_count: int = Field(..., description="Products after filtering")
    categories: list[str] = Field(default_factory=list)
    filters: InventoryFilters
    has_active_filters: bool
    low_stock_count: int = 0
    loading_ids: list[str] = Field(
        default_factory=list, description="Products with a stock change in flight"
    )


class LowStockAlertResponse(BaseModel):
    """Product below its reorder point."""

    product_id: str
    name: str
    current_stock: float
    min_stock_level: float
    deficit: float


class StockMovementResponse(BaseModel):
    """Signed stock movement."""

    id: str
    product_id: str
    quantity: int = Field(..., description="Positive for IN, negative for OUT")
    type: str
    date: dt.date
    note: str | None = None


class NotificationResponse(BaseModel):
    level: str
    title: str
    description: str | None = None


class AdjustStockResponse(BaseModel):
    """Outcome of a stock adjustment."""

    status: str = Field(..., description="confirmed, rolled_back or ignored")
    product_id: str
    quantity: int | float
    type: str
    movement: StockMovementResponse | None = None
    product: ProductResponse | None = Field(
        default=None, description="Product after the change, when confirmed"
    )
    notification: NotificationResponse | None = None
    states: list[str] = Field(default_factory=list, description="State machine trace")


class CheckoutLineResponse(BaseModel):
    """Outcome for one cart line."""

    product_id: str
    name: str | None = None
    quantity: int
    status: str = Field(..., description="sold, failed or not_attempted")
    movement: StockMovementResponse | None = None
    error_code: str | None = None
    error: str | None = None


class CheckoutResponse(BaseModel):
    """Outcome of a checkout."""

    status: str = Field(..., description="completed, partial or rejected")
    lines: list[CheckoutLineResponse]
    sold_count: int
    total: float = Field(..., description="Store price of the sold lines")
    refreshed: bool = False
    summary: str


class RowFailureResponse(BaseModel):
    name: str
    error: str


class ImportReportResponse(BaseModel):
    """Outcome of importing a batch of rows."""

    total: int
    succeeded: int
    skipped: int
    failed: int
    errors: list[RowFailureResponse] = Field(default_factory=list)
    error_overflow: int = Field(default=0, description="Errors beyond the reported limit")
    created_ids: list[str] = Field(default_factory=list)
    refreshed: bool = False
    summary: str


class SpreadsheetImportResponse(BaseModel):
    """Spreadsheet parse result plus the import report when rows were imported."""

    parse: SpreadsheetParseResult
    report: ImportReportResponse | None = None


class InvoicePreviewResponse(BaseModel):
    """Invoice extraction for user review before import."""

    success: bool
    data: InvoiceData | None = None
    error: str | None = None
    error_category: str | None = None
    ocr_text: str | None = None
    used_fallback: bool = False


class ProviderHealthResponse(BaseModel):
    """Provider health status."""

    name: str
    available: bool
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str = "1.0.0"
    uptime_seconds: float
    backend: ProviderHealthResponse | None = None
    llm: ProviderHealthResponse | None = None
    cache: dict[str, int] | None = None


class ErrorResponse(BaseModel):
    """Standardized error response DTO.

    Every error response includes:
    - error_code: machine-readable code (e.g. PRODUCT_NOT_FOUND)
    - message: human-readable description
    - hint: suggested recovery action
    - path: request path that triggered the error
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error description")
    hint: str | None = Field(default=None, description="Suggested recovery action")
    detail: str | None = Field(default=None, description="Additional details")
    path: str | None = Field(default=None, description="Request path")
    timestamp: dt.datetime = Field(default_factory=dt.datetime.now)
