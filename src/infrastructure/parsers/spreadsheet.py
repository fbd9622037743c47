"""
Spreadsheet import and export.

Reads product rows from .xlsx workbooks using localized (Romanian) column
headers and writes the inventory back out in the same layout.
"""

from collections.abc import Iterable
from datetime import date, datetime
from io import BytesIO
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils.datetime import from_excel

from src.config import get_logger
from src.core.entities import (
    ImportedProduct,
    ImportRowError,
    Product,
    SpreadsheetParseResult,
)
from src.infrastructure.parsers.base import normalize_header, parse_date, parse_number

logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# Sheet header -> canonical field
COLUMN_ALIASES: dict[str, str] = {
    "Cod de bare (Barcode)": "barcode",
    "Denumirea produsului": "name",
    "Categorie": "category",
    "Pret (euro)": "price",
    "Cost pret magazin 50%": "price_50",
    "Cost preț magazin 50%": "price_50",
    "Cost pret magazin 70%": "price_70",
    "Cost preț magazin 70%": "price_70",
    "Cost pret magazin 100%": "price_100",
    "Cost preț magazin 100%": "price_100",
    "Stock curent": "current_stock",
    "Stock minim": "min_stock",
    "Furnizor": "supplier",
    "Data expirare": "expiry_date",
}

_NORMALIZED_ALIASES = {normalize_header(header): field for header, field in COLUMN_ALIASES.items()}

EXPORT_COLUMNS = [
    "barcode",
    "name",
    "category",
    "price",
    "price_50",
    "price_70",
    "price_100",
    "current_stock",
    "min_stock",
    "supplier",
    "expiry_date",
]

EXPORT_HEADERS = {
    "barcode": "Cod de bare (Barcode)",
    "name": "Denumirea produsului",
    "category": "Categorie",
    "price": "Pret (euro)",
    "price_50": "Cost pret magazin 50%",
    "price_70": "Cost pret magazin 70%",
    "price_100": "Cost pret magazin 100%",
    "current_stock": "Stock curent",
    "min_stock": "Stock minim",
    "supplier": "Furnizor",
    "expiry_date": "Data expirare",
}

EXPORT_WIDTHS = [18, 30, 12, 10, 12, 12, 12, 12, 12, 20, 14]

NUMBER_FIELDS = {"price", "price_50", "price_70", "price_100", "current_stock", "min_stock"}
DATE_FIELDS = {"expiry_date"}

SHEET_NAME = "Inventory"


def map_header(header: str) -> str | None:
    """Find the canonical field for a sheet header, exact match first."""
    if header in COLUMN_ALIASES:
        return COLUMN_ALIASES[header]
    return _NORMALIZED_ALIASES.get(normalize_header(header))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_string(value: Any) -> str | None:
    if isinstance(value, float) and value.is_integer():
        # Numeric barcodes come back as floats
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    text = str(value).strip()
    return text or None


def _to_date(value: Any) -> str | None:
    if isinstance(value, (datetime, date)):
        return parse_date(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            converted = from_excel(value)
        except (ValueError, OverflowError):
            return None
        if isinstance(converted, datetime):
            return converted.date().isoformat()
        return None
    text = str(value).strip()
    return parse_date(text) or text or None


def convert_value(value: Any, field: str) -> Any:
    """Convert a raw cell into the field's type; None when absent or unusable."""
    if _is_blank(value):
        return None
    if field in NUMBER_FIELDS:
        return parse_number(value)
    if field in DATE_FIELDS:
        return _to_date(value)
    return _to_string(value)


def _failure(message: str) -> SpreadsheetParseResult:
    return SpreadsheetParseResult(
        success=False,
        errors=[ImportRowError(row=0, message=message)],
    )


def _read_rows(content: bytes) -> list[tuple] | None:
    """Rows of the first worksheet, trailing blank rows dropped. None if no sheet."""
    workbook = load_workbook(BytesIO(content), read_only=True, data_only=True)
    try:
        if not workbook.worksheets:
            return None
        sheet = workbook.worksheets[0]
        rows = [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()

    while rows and all(_is_blank(cell) for cell in rows[-1]):
        rows.pop()
    return rows


def _find_header(rows: list[tuple], search_rows: int) -> tuple[int, list[str]] | None:
    for index, row in enumerate(rows[:search_rows]):
        headers = ["" if cell is None else str(cell).strip() for cell in row]
        fields = [field for field in map(map_header, headers) if field]
        if "name" in fields or len(fields) >= 2:
            return index, headers
    return None


def parse_spreadsheet(content: bytes, header_search_rows: int = 5) -> SpreadsheetParseResult:
    """
    Parse an .xlsx workbook into candidate product rows.

    Only the first sheet is read. The header row is searched for in the
    first `header_search_rows` rows. Row numbers in errors are 1-indexed
    sheet rows.
    """
    try:
        rows = _read_rows(content)
    except Exception as e:
        logger.warning("spreadsheet_unreadable", error=str(e))
        return _failure(f"Failed to parse file: {e}")

    if rows is None:
        return _failure("No sheets found in the workbook")
    if len(rows) < 2:
        return _failure("File must have at least a header row and one data row")

    header = _find_header(rows, header_search_rows)
    if header is None:
        return _failure(
            "Could not find recognizable column headers. Expected columns like "
            '"Cod de bare (Barcode)" and "Denumirea produsului"'
        )
    header_index, headers = header

    column_map: dict[int, str] = {}
    for index, label in enumerate(headers):
        field = map_header(label) if label else None
        if field and field not in column_map.values():
            column_map[index] = field

    if "name" not in column_map.values():
        return _failure(
            "Missing required column: Name (Denumirea produsului). "
            "This column is required for import."
        )

    warnings: list[str] = []
    if "barcode" not in column_map.values():
        warnings.append(
            "Barcode column not found. Products will be imported without barcodes "
            "- you can add them later via the edit dialog."
        )

    products: list[ImportedProduct] = []
    errors: list[ImportRowError] = []

    for index in range(header_index + 1, len(rows)):
        row = rows[index]
        row_number = index + 1

        if all(_is_blank(cell) for cell in row):
            continue

        values: dict[str, Any] = {}
        for column, field in column_map.items():
            raw = row[column] if column < len(row) else None
            value = convert_value(raw, field)
            if value is not None:
                values[field] = value

        if not values.get("name"):
            errors.append(
                ImportRowError(
                    row=row_number,
                    field="name",
                    message="Missing required field: name",
                )
            )
            continue

        products.append(ImportedProduct(**values))

    for index, label in enumerate(headers):
        if label and index not in column_map:
            warnings.append(f'Column "{label}" was not recognized and will be skipped')

    total_rows = len(rows) - header_index - 1
    logger.info(
        "spreadsheet_parsed",
        total_rows=total_rows,
        valid_rows=len(products),
        errors=len(errors),
        warnings=len(warnings),
    )

    return SpreadsheetParseResult(
        success=len(products) > 0,
        products=products,
        errors=errors,
        warnings=warnings,
        total_rows=total_rows,
        valid_rows=len(products),
    )


def _export_value(product: Product, field: str) -> Any:
    if field == "min_stock":
        value = product.min_stock_level
    else:
        value = getattr(product, field)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, float) and value != value:
        # NaN from loose backend data
        return None
    return value


def export_filename(today: date | None = None) -> str:
    """Dated download name, e.g. inventory-2024-03-01.xlsx."""
    return f"inventory-{(today or date.today()).isoformat()}.xlsx"


def export_inventory_workbook(products: Iterable[Product]) -> bytes:
    """Write products to an .xlsx workbook with a bold header row."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_NAME

    for column, field in enumerate(EXPORT_COLUMNS, 1):
        cell = sheet.cell(row=1, column=column, value=EXPORT_HEADERS[field])
        cell.font = Font(bold=True)

    count = 0
    for row, product in enumerate(products, 2):
        for column, field in enumerate(EXPORT_COLUMNS, 1):
            sheet.cell(row=row, column=column, value=_export_value(product, field))
        count += 1

    for column, width in zip(sheet.iter_cols(min_row=1, max_row=1), EXPORT_WIDTHS):
        sheet.column_dimensions[column[0].column_letter].width = width

    output = BytesIO()
    workbook.save(output)
    logger.info("spreadsheet_exported", products=count)
    return output.getvalue()
