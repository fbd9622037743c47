"""Data transfer objects for API contracts."""

from src.application.dto.requests import (
    AdjustStockRequest,
    CartItemRequest,
    CheckoutRequest,
    CreateProductRequest,
    ImportRowsRequest,
    QuickAdjustRequest,
    UpdateProductRequest,
)
from src.application.dto.responses import (
    AdjustStockResponse,
    CheckoutLineResponse,
    CheckoutResponse,
    ErrorResponse,
    HealthResponse,
    ImportReportResponse,
    InvoicePreviewResponse,
    LowStockAlertResponse,
    NotificationResponse,
    ProductListResponse,
    ProductResponse,
    ProviderHealthResponse,
    RowFailureResponse,
    SpreadsheetImportResponse,
    StockMovementResponse,
)

__all__ = [
    # Requests
    "CreateProductRequest",
    "UpdateProductRequest",
    "AdjustStockRequest",
    "QuickAdjustRequest",
    "CartItemRequest",
    "CheckoutRequest",
    "ImportRowsRequest",
    # Responses
    "ProductResponse",
    "ProductListResponse",
    "LowStockAlertResponse",
    "StockMovementResponse",
    "NotificationResponse",
    "AdjustStockResponse",
    "CheckoutLineResponse",
    "CheckoutResponse",
    "RowFailureResponse",
    "ImportReportResponse",
    "SpreadsheetImportResponse",
    "InvoicePreviewResponse",
    "ProviderHealthResponse",
    "HealthResponse",
    "ErrorResponse",
]
