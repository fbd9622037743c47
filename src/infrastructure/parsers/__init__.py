"""Import parser implementations."""

from src.infrastructure.parsers.invoice_parser import (
    InvoiceParser,
    basic_parse_invoice,
    parse_llm_response,
    strip_code_fences,
)
from src.infrastructure.parsers.spreadsheet import (
    XLSX_MEDIA_TYPE,
    export_filename,
    export_inventory_workbook,
    map_header,
    parse_spreadsheet,
)

__all__ = [
    # Spreadsheet
    "parse_spreadsheet",
    "export_inventory_workbook",
    "export_filename",
    "map_header",
    "XLSX_MEDIA_TYPE",
    # Invoice
    "InvoiceParser",
    "basic_parse_invoice",
    "parse_llm_response",
    "strip_code_fences",
]
