"""
Invoice image parser.

OCR text from the image is structured into line items by the LLM. When the
LLM is unavailable or returns unusable output, a line-based regex parser
takes over. Includes Pydantic validation for LLM JSON responses.
"""

import json
import math
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.config import get_logger
from src.core.entities import InvoiceData, InvoiceExtractionResult, InvoiceProduct
from src.core.exceptions import ExtractionError, LLMError, LLMResponseError
from src.core.interfaces import ILLMProvider, IOCRProvider
from src.infrastructure.parsers.base import clean_item_name, parse_date

logger = get_logger(__name__)


# ============================================================================
# Pydantic Models for LLM Response Validation
# ============================================================================

def _to_float(v: Any) -> float | None:
    if v is None or isinstance(v, bool):
        return None
    try:
        number = float(str(v).strip().replace(",", ".")) if isinstance(v, str) else float(v)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class LLMInvoiceProduct(BaseModel):
    """Line item as returned by the LLM (camelCase keys)."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    quantity: float = 1
    unit_price: float = Field(default=0, alias="unitPrice")
    total_price: float = Field(default=0, alias="totalPrice")
    barcode: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v: Any) -> float:
        # Missing or zero quantity means one unit
        return _to_float(v) or 1

    @field_validator("unit_price", "total_price", mode="before")
    @classmethod
    def default_price(cls, v: Any) -> float:
        return _to_float(v) or 0

    @field_validator("barcode", mode="before")
    @classmethod
    def coerce_barcode(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        if isinstance(v, float) and v.is_integer():
            v = int(v)
        return str(v).strip() or None


class LLMInvoiceResponse(BaseModel):
    """Complete LLM invoice extraction."""

    model_config = ConfigDict(populate_by_name=True)

    supplier: str | None = None
    invoice_number: str | None = Field(default=None, alias="invoiceNumber")
    invoice_date: str | None = Field(default=None, alias="invoiceDate")
    total_amount: float | None = Field(default=None, alias="totalAmount")
    products: list[LLMInvoiceProduct] = Field(default_factory=list)

    @field_validator("supplier", "invoice_number", "invoice_date", mode="before")
    @classmethod
    def coerce_string(cls, v: Any) -> str | None:
        if v is None or v == "":
            return None
        return str(v).strip() or None

    @field_validator("total_amount", mode="before")
    @classmethod
    def coerce_total(cls, v: Any) -> float | None:
        return _to_float(v) or None

    @field_validator("products", mode="before")
    @classmethod
    def coerce_products(cls, v: Any) -> list:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict)]

    def to_invoice(self) -> InvoiceData:
        return InvoiceData(
            supplier=self.supplier,
            invoice_number=self.invoice_number,
            invoice_date=parse_date(self.invoice_date) or self.invoice_date,
            total_amount=self.total_amount,
            products=[
                InvoiceProduct(
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total_price=item.total_price,
                    barcode=item.barcode,
                )
                for item in self.products
                if item.name
            ],
        )


INVOICE_SYSTEM_PROMPT = (
    "You are a precise invoice data extraction assistant. "
    "Always return valid JSON only, no markdown or explanations."
)

INVOICE_EXTRACTION_PROMPT = """You are an invoice data extraction assistant. Extract the following information from this invoice OCR text:

1. Supplier name (if present)
2. Invoice number (if present)
3. Invoice date (if present, in YYYY-MM-DD format)
4. All products/line items with:
   - Product name
   - Quantity (as a number)
   - Unit price (as a number, in euros)
   - Total price (as a number, in euros)
   - Barcode (if present, usually 8-13 digits)

Return ONLY valid JSON in this exact format (no markdown, no explanation):
{{
  "supplier": "string or null",
  "invoiceNumber": "string or null",
  "invoiceDate": "YYYY-MM-DD or null",
  "totalAmount": number or null,
  "products": [
    {{
      "name": "string",
      "quantity": number,
      "unitPrice": number,
      "totalPrice": number,
      "barcode": "string or null"
    }}
  ]
}}

Important:
- Product name is REQUIRED (skip rows without a product name)
- If quantity is missing, use 1
- If prices are missing, use 0
- Extract all line items, not just the first few
- Remove any VAT/tax line items
- Barcodes are usually EAN-13 (13 digits) or UPC (12 digits)

Invoice OCR Text:
{ocr_text}"""

# <name> <qty> <unit price> <total>, prices with two decimals
PRODUCT_LINE_PATTERN = re.compile(r"^(.+?)\s+(\d+)\s+(\d+[.,]\d{2})\s+(\d+[.,]\d{2})$")

NO_PRODUCTS_MESSAGE = (
    "No products found in the invoice. Please ensure the invoice is clear "
    "and contains product line items."
)


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences around a JSON reply."""
    return re.sub(r"```(?:json)?\n?", "", text).strip()


def parse_llm_response(text: str) -> InvoiceData:
    """
    Parse and validate the LLM's JSON reply.

    Raises:
        LLMResponseError: reply is not a JSON object or fails validation
    """
    json_str = strip_code_fences(text)
    try:
        raw_data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Invalid JSON syntax: {e}", text) from e

    if not isinstance(raw_data, dict):
        raise LLMResponseError("Expected a JSON object", text)

    try:
        validated = LLMInvoiceResponse.model_validate(raw_data)
    except ValidationError as e:
        raise LLMResponseError(f"Validation failed: {e.error_count()} errors", text) from e

    return validated.to_invoice()


def basic_parse_invoice(ocr_text: str) -> InvoiceData:
    """Regex line parser used when the LLM cannot structure the text."""
    products = []
    for line in ocr_text.splitlines():
        match = PRODUCT_LINE_PATTERN.match(line.strip())
        if not match:
            continue
        name, quantity, unit_price, total = match.groups()
        products.append(
            InvoiceProduct(
                name=clean_item_name(name),
                quantity=int(quantity),
                unit_price=float(unit_price.replace(",", ".")),
                total_price=float(total.replace(",", ".")),
            )
        )
    return InvoiceData(products=products)


class InvoiceParser:
    """OCR + LLM invoice extraction with regex fallback."""

    def __init__(self, ocr: IOCRProvider, llm: ILLMProvider | None = None):
        self.ocr = ocr
        self.llm = llm

    async def structure(self, ocr_text: str) -> tuple[InvoiceData, bool]:
        """
        Turn OCR text into invoice data.

        Returns:
            (invoice data, whether the regex fallback was used)
        """
        if self.llm is None:
            logger.warning("invoice_llm_not_configured")
            return basic_parse_invoice(ocr_text), True

        try:
            response = await self.llm.chat(
                [
                    {"role": "system", "content": INVOICE_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": INVOICE_EXTRACTION_PROMPT.format(ocr_text=ocr_text),
                    },
                ]
            )
            return parse_llm_response(response.text), False
        except LLMError as e:
            logger.warning("invoice_llm_fallback", error=str(e), code=e.code)
            return basic_parse_invoice(ocr_text), True

    async def extract(self, image: bytes, content_type: str) -> InvoiceExtractionResult:
        """Run OCR and structuring; failures come back as a categorized result."""
        ocr_text: str | None = None
        try:
            ocr_result = await self.ocr.extract_text(image, content_type)
            ocr_text = ocr_result.text
            invoice, used_fallback = await self.structure(ocr_text)
        except ExtractionError as e:
            logger.warning("invoice_extraction_failed", category=e.category, error=e.message)
            return InvoiceExtractionResult(
                success=False,
                error=e.user_message,
                error_category=e.category,
                ocr_text=ocr_text,
            )

        if not invoice.products:
            logger.info("invoice_no_products", used_fallback=used_fallback)
            return InvoiceExtractionResult(
                success=False,
                error=NO_PRODUCTS_MESSAGE,
                error_category="no_products",
                ocr_text=ocr_text,
                used_fallback=used_fallback,
            )

        logger.info(
            "invoice_extracted",
            products=len(invoice.products),
            has_supplier=invoice.supplier is not None,
            has_invoice_number=invoice.invoice_number is not None,
            used_fallback=used_fallback,
        )
        return InvoiceExtractionResult(
            success=True,
            data=invoice,
            ocr_text=ocr_text,
            used_fallback=used_fallback,
        )
