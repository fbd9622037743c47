"""Core domain entities."""

from src.core.entities.filters import InventoryFilters, SortDirection, SortField
from src.core.entities.imports import (
    ImportedProduct,
    ImportRowError,
    InvoiceData,
    InvoiceExtractionResult,
    InvoiceProduct,
    SpreadsheetParseResult,
)
from src.core.entities.product import (
    DEFAULT_MARKUP,
    MarkupTier,
    MovementType,
    Product,
    ProductDraft,
    ProductUpdate,
    StockMovement,
    signed_quantity,
)

__all__ = [
    # Product entities
    "Product",
    "ProductDraft",
    "ProductUpdate",
    "StockMovement",
    "MovementType",
    "MarkupTier",
    "DEFAULT_MARKUP",
    "signed_quantity",
    # Filter state
    "InventoryFilters",
    "SortField",
    "SortDirection",
    # Import entities
    "ImportedProduct",
    "ImportRowError",
    "SpreadsheetParseResult",
    "InvoiceProduct",
    "InvoiceData",
    "InvoiceExtractionResult",
]
