"""
Core business logic services.

Layer-pure services that depend only on:
- src/core/entities/*
- src/core/interfaces/*
- src/core/exceptions.py

NO infrastructure imports. All dependencies injected via constructor.
"""

from src.core.services.import_reconciler import (
    ImportReconciler,
    ReconciliationReport,
    RowFailure,
)
from src.core.services.inventory_list import (
    InventoryListEngine,
    InventoryView,
    LowStockAlert,
    is_low_stock,
    sanitize_number,
)
from src.core.services.pricing import display_price, tier_prices, with_tier_prices
from src.core.services.query_cache import MutationResult, QueryCache
from src.core.services.stock_mutation import (
    MutationStatus,
    Notification,
    StockMutationEngine,
    StockMutationResult,
)

__all__ = [
    # Query cache
    "QueryCache",
    "MutationResult",
    # Inventory list
    "InventoryListEngine",
    "InventoryView",
    "LowStockAlert",
    "is_low_stock",
    "sanitize_number",
    # Stock mutation
    "StockMutationEngine",
    "StockMutationResult",
    "MutationStatus",
    "Notification",
    # Import reconciliation
    "ImportReconciler",
    "ReconciliationReport",
    "RowFailure",
    # Pricing
    "display_price",
    "tier_prices",
    "with_tier_prices",
]
