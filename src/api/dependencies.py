"""
Dependency injection container for FastAPI.

Provides use case instances to route handlers. Tests replace these
through ``app.dependency_overrides``.
"""

from src.application.services import get_backend, get_query_cache, get_stock_mutation_engine
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
from src.core.interfaces import IBackendAdapter, ILLMProvider
from src.core.services import QueryCache


# Infrastructure dependencies
def get_backend_adapter() -> IBackendAdapter:
    """Get the configured backend adapter."""
    return get_backend()


def get_cache() -> QueryCache:
    """Get the shared query cache."""
    return get_query_cache()


def get_llm() -> ILLMProvider:
    """Get the configured LLM provider."""
    from src.infrastructure.llm import get_llm_provider

    return get_llm_provider()


# Use case dependencies
def get_list_inventory_use_case() -> ListInventoryUseCase:
    """Get list inventory use case (fresh filter state per request)."""
    return ListInventoryUseCase(stock_engine=get_stock_mutation_engine())


def get_manage_product_use_case() -> ManageProductUseCase:
    """Get manage product use case."""
    return ManageProductUseCase()


def get_adjust_stock_use_case() -> AdjustStockUseCase:
    """Get adjust stock use case."""
    return AdjustStockUseCase()


def get_checkout_use_case() -> CheckoutUseCase:
    """Get checkout use case."""
    return CheckoutUseCase()


def get_import_spreadsheet_use_case() -> ImportSpreadsheetUseCase:
    """Get import spreadsheet use case."""
    return ImportSpreadsheetUseCase()


def get_extract_invoice_use_case() -> ExtractInvoiceUseCase:
    """Get extract invoice use case."""
    return ExtractInvoiceUseCase()


def get_import_rows_use_case() -> ImportRowsUseCase:
    """Get import rows use case."""
    return ImportRowsUseCase()


def get_export_inventory_use_case() -> ExportInventoryUseCase:
    """Get export inventory use case."""
    return ExportInventoryUseCase()
