"""
Application layer - Use cases, DTOs, and service factories.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Providing factory functions for dependency injection

Use cases are the only entry point for API handlers.
"""

from src.application.dto import (
    AdjustStockRequest,
    AdjustStockResponse,
    CreateProductRequest,
    ErrorResponse,
    HealthResponse,
    ImportReportResponse,
    ImportRowsRequest,
    InvoicePreviewResponse,
    LowStockAlertResponse,
    ProductListResponse,
    ProductResponse,
    QuickAdjustRequest,
    SpreadsheetImportResponse,
    StockMovementResponse,
    UpdateProductRequest,
)
from src.application.services import (
    create_inventory_list_engine,
    get_backend,
    get_import_reconciler,
    get_invoice_parser,
    get_query_cache,
    get_stock_mutation_engine,
    reset_services,
)
from src.application.use_cases import (
    AdjustStockUseCase,
    CheckoutUseCase,
    ExportInventoryUseCase,
    ExtractInvoiceUseCase,
    ImportRowsUseCase,
    ImportSpreadsheetUseCase,
    ListInventoryUseCase,
    ManageProductUseCase,
)

__all__ = [
    # Request DTOs
    "CreateProductRequest",
    "UpdateProductRequest",
    "AdjustStockRequest",
    "QuickAdjustRequest",
    "ImportRowsRequest",
    # Response DTOs
    "ProductResponse",
    "ProductListResponse",
    "LowStockAlertResponse",
    "StockMovementResponse",
    "AdjustStockResponse",
    "ImportReportResponse",
    "SpreadsheetImportResponse",
    "InvoicePreviewResponse",
    "HealthResponse",
    "ErrorResponse",
    # Use Cases
    "ListInventoryUseCase",
    "ManageProductUseCase",
    "AdjustStockUseCase",
    "CheckoutUseCase",
    "ImportSpreadsheetUseCase",
    "ExtractInvoiceUseCase",
    "ImportRowsUseCase",
    "ExportInventoryUseCase",
    # Service factories
    "get_query_cache",
    "get_backend",
    "create_inventory_list_engine",
    "get_stock_mutation_engine",
    "get_import_reconciler",
    "get_invoice_parser",
    "reset_services",
]
