"""
Service factory functions for dependency injection.

This module provides factory functions that wire infrastructure
implementations to core services. Use cases should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from src.config import get_logger, get_settings
from src.core.services import (
    ImportReconciler,
    InventoryListEngine,
    QueryCache,
    StockMutationEngine,
)

if TYPE_CHECKING:
    from src.core.interfaces import IBackendAdapter, ILLMProvider, IOCRProvider
    from src.infrastructure.parsers import InvoiceParser

logger = get_logger(__name__)


# Singleton service instances
_query_cache: QueryCache | None = None
_stock_engine: StockMutationEngine | None = None
_import_reconciler: ImportReconciler | None = None
_invoice_parser: "InvoiceParser | None" = None


def get_query_cache() -> QueryCache:
    """
    Get or create the process-wide query cache.

    Every engine shares this cache so that a stock change or an import
    is visible to the next list read.
    """
    global _query_cache
    if _query_cache is None:
        _query_cache = QueryCache(stale_time=get_settings().inventory.stale_time)
    return _query_cache


def get_backend() -> "IBackendAdapter":
    """Get the configured backend adapter."""
    # Lazy import infrastructure to avoid circular imports
    from src.infrastructure.storage import get_backend_adapter

    return get_backend_adapter()


def create_inventory_list_engine(
    backend: "IBackendAdapter | None" = None,
    cache: QueryCache | None = None,
) -> InventoryListEngine:
    """
    Build a list engine. Filter state is per caller, so this is not a singleton.
    """
    return InventoryListEngine(backend or get_backend(), cache or get_query_cache())


def get_stock_mutation_engine(
    backend: "IBackendAdapter | None" = None,
    cache: QueryCache | None = None,
) -> StockMutationEngine:
    """
    Get or create StockMutationEngine instance.

    One engine per process holds the per-product in-flight guard.

    Args:
        backend: Optional backend override (returns a fresh engine)
        cache: Optional cache override (returns a fresh engine)
    """
    global _stock_engine

    if _stock_engine is not None and backend is None and cache is None:
        return _stock_engine

    engine = StockMutationEngine(
        backend or get_backend(),
        cache or get_query_cache(),
        threshold=get_settings().inventory.large_quantity_threshold,
    )

    if backend is None and cache is None:
        _stock_engine = engine

    return engine


def get_import_reconciler(
    backend: "IBackendAdapter | None" = None,
    cache: QueryCache | None = None,
) -> ImportReconciler:
    """Get or create ImportReconciler instance."""
    global _import_reconciler

    if _import_reconciler is not None and backend is None and cache is None:
        return _import_reconciler

    reconciler = ImportReconciler(
        backend or get_backend(),
        cache or get_query_cache(),
        error_limit=get_settings().inventory.import_error_limit,
    )

    if backend is None and cache is None:
        _import_reconciler = reconciler

    return reconciler


def get_invoice_parser(
    ocr_provider: "IOCRProvider | None" = None,
    llm_provider: "ILLMProvider | None" = None,
) -> "InvoiceParser":
    """
    Get or create InvoiceParser instance.

    The LLM is optional: without an API key, invoices are structured by
    the regex line parser.

    Args:
        ocr_provider: Optional OCR provider override
        llm_provider: Optional LLM provider override
    """
    global _invoice_parser

    if _invoice_parser is not None and ocr_provider is None and llm_provider is None:
        return _invoice_parser

    # Lazy import infrastructure
    from src.infrastructure.llm import get_llm_provider
    from src.infrastructure.ocr import get_ocr_provider
    from src.infrastructure.parsers import InvoiceParser

    llm = llm_provider
    if llm is None and get_settings().llm.api_key:
        llm = get_llm_provider()
    if llm is None:
        logger.info("invoice_parser_without_llm")

    parser = InvoiceParser(ocr=ocr_provider or get_ocr_provider(), llm=llm)

    if ocr_provider is None and llm_provider is None:
        _invoice_parser = parser

    return parser


def reset_services() -> None:
    """
    Reset all singleton service instances.

    Useful for testing or when configuration changes.
    """
    global _query_cache
    global _stock_engine
    global _import_reconciler
    global _invoice_parser

    _query_cache = None
    _stock_engine = None
    _import_reconciler = None
    _invoice_parser = None


__all__ = [
    # Factory functions
    "get_query_cache",
    "get_backend",
    "create_inventory_list_engine",
    "get_stock_mutation_engine",
    "get_import_reconciler",
    "get_invoice_parser",
    # Reset
    "reset_services",
]
