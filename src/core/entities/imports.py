"""Transient import rows and parse results."""

from datetime import date

from pydantic import BaseModel, Field

from src.core.entities.product import MarkupTier


class ImportedProduct(BaseModel):
    """A candidate product row from a spreadsheet or invoice."""

    name: str
    barcode: str | None = None
    category: str | None = None
    price: float | None = None
    price_50: float | None = None
    price_70: float | None = None
    price_100: float | None = None
    markup: MarkupTier | None = None
    current_stock: float | None = None  # initial quantity
    min_stock: float | None = None
    supplier: str | None = None
    expiry_date: date | str | None = None


class ImportRowError(BaseModel):
    """A spreadsheet row that could not be accepted."""

    row: int  # 1-indexed sheet row, 0 for file-level problems
    field: str | None = None
    message: str


class SpreadsheetParseResult(BaseModel):
    success: bool
    products: list[ImportedProduct] = Field(default_factory=list)
    errors: list[ImportRowError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    total_rows: int = 0
    valid_rows: int = 0


class InvoiceProduct(BaseModel):
    """A line item read off an invoice image."""

    name: str
    quantity: float = 1
    unit_price: float = 0
    total_price: float = 0
    barcode: str | None = None


class InvoiceData(BaseModel):
    products: list[InvoiceProduct] = Field(default_factory=list)
    supplier: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    total_amount: float | None = None

    def to_import_rows(self) -> list[ImportedProduct]:
        """Convert invoice lines into rows for import reconciliation."""
        return [
            ImportedProduct(
                name=item.name,
                barcode=item.barcode,
                price=item.unit_price or None,
                current_stock=item.quantity,
                supplier=self.supplier,
            )
            for item in self.products
        ]


class InvoiceExtractionResult(BaseModel):
    success: bool
    data: InvoiceData | None = None
    error: str | None = None
    error_category: str | None = None
    ocr_text: str | None = None
    used_fallback: bool = False
