"""Application use cases."""

from src.application.use_cases.adjust_stock import AdjustStockUseCase
from src.application.use_cases.checkout import CheckoutResult, CheckoutUseCase
from src.application.use_cases.export_inventory import ExportInventoryUseCase, ExportResult
from src.application.use_cases.extract_invoice import ExtractInvoiceUseCase
from src.application.use_cases.import_rows import ImportRowsUseCase
from src.application.use_cases.import_spreadsheet import (
    ImportSpreadsheetUseCase,
    SpreadsheetImportResult,
)
from src.application.use_cases.list_inventory import ListInventoryUseCase, product_to_response
from src.application.use_cases.manage_product import ManageProductUseCase

__all__ = [
    "ListInventoryUseCase",
    "ManageProductUseCase",
    "AdjustStockUseCase",
    "CheckoutUseCase",
    "CheckoutResult",
    "ImportSpreadsheetUseCase",
    "SpreadsheetImportResult",
    "ExtractInvoiceUseCase",
    "ImportRowsUseCase",
    "ExportInventoryUseCase",
    "ExportResult",
    "product_to_response",
]
