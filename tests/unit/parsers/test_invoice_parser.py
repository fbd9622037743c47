"""Unit tests for invoice structuring (LLM with regex fallback)."""

from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import ExtractionError, LLMResponseError, LLMUnavailableError
from src.core.interfaces import LLMResponse, OCRResult
from src.infrastructure.parsers import (
    InvoiceParser,
    basic_parse_invoice,
    parse_llm_response,
    strip_code_fences,
)

OCR_TEXT = """FURNIZOR SRL
Factura 123
Lapte UHT 1L 12 1.20 14.40
Paine alba 5 0,80 4,00
TOTAL 18.40"""

LLM_JSON = """```json
{
  "supplier": "Furnizor SRL",
  "invoiceNumber": "F-123",
  "invoiceDate": "05.03.2024",
  "totalAmount": "18,40",
  "products": [
    {"name": "Lapte UHT 1L", "quantity": 12, "unitPrice": 1.2, "totalPrice": 14.4, "barcode": 5941234567890},
    {"name": "Paine alba", "quantity": 0, "unitPrice": "0,80", "totalPrice": 4},
    {"name": "", "quantity": 3},
    "garbage"
  ]
}
```"""


def make_ocr(text: str = OCR_TEXT) -> AsyncMock:
    ocr = AsyncMock()
    ocr.extract_text.return_value = OCRResult(text=text, provider="test")
    return ocr


def make_llm(text: str = LLM_JSON) -> AsyncMock:
    llm = AsyncMock()
    llm.chat.return_value = LLMResponse(text=text, model="test-model")
    return llm


class TestBasicParse:
    def test_matches_product_lines(self):
        invoice = basic_parse_invoice(OCR_TEXT)

        assert [p.name for p in invoice.products] == ["Lapte UHT 1L", "Paine alba"]
        milk, bread = invoice.products
        assert milk.quantity == 12
        assert milk.unit_price == 1.2
        assert milk.total_price == 14.4
        assert bread.unit_price == 0.8
        assert invoice.supplier is None

    def test_no_matches(self):
        assert basic_parse_invoice("just some text\nno numbers").products == []


class TestParseLLMResponse:
    def test_strip_code_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_camel_case_and_coercion(self):
        invoice = parse_llm_response(LLM_JSON)

        assert invoice.supplier == "Furnizor SRL"
        assert invoice.invoice_number == "F-123"
        assert invoice.invoice_date == "2024-03-05"
        assert invoice.total_amount == 18.4
        assert len(invoice.products) == 2
        milk, bread = invoice.products
        assert milk.barcode == "5941234567890"
        assert bread.quantity == 1
        assert bread.unit_price == 0.8

    def test_invalid_json(self):
        with pytest.raises(LLMResponseError):
            parse_llm_response("Sorry, I cannot read this invoice.")

    def test_non_object(self):
        with pytest.raises(LLMResponseError):
            parse_llm_response("[1, 2, 3]")

    def test_missing_products(self):
        assert parse_llm_response('{"supplier": "X"}').products == []


class TestInvoiceParser:
    async def test_llm_structures_text(self):
        llm = make_llm()
        parser = InvoiceParser(ocr=make_ocr(), llm=llm)

        result = await parser.extract(b"image", "image/jpeg")

        assert result.success
        assert not result.used_fallback
        assert result.data.supplier == "Furnizor SRL"
        assert result.ocr_text == OCR_TEXT
        prompt = llm.chat.call_args.args[0][-1]["content"]
        assert "Lapte UHT 1L 12 1.20 14.40" in prompt

    async def test_without_llm_uses_regex(self):
        parser = InvoiceParser(ocr=make_ocr())

        result = await parser.extract(b"image", "image/png")

        assert result.success
        assert result.used_fallback
        assert len(result.data.products) == 2

    async def test_llm_unavailable_falls_back(self):
        llm = AsyncMock()
        llm.chat.side_effect = LLMUnavailableError("openai", "quota")
        parser = InvoiceParser(ocr=make_ocr(), llm=llm)

        result = await parser.extract(b"image", "image/png")

        assert result.success
        assert result.used_fallback
        assert [p.name for p in result.data.products] == ["Lapte UHT 1L", "Paine alba"]

    async def test_unparseable_llm_reply_falls_back(self):
        parser = InvoiceParser(ocr=make_ocr(), llm=make_llm("not json"))

        invoice, used_fallback = await parser.structure(OCR_TEXT)

        assert used_fallback
        assert len(invoice.products) == 2

    async def test_no_products(self):
        parser = InvoiceParser(ocr=make_ocr("Thank you for your purchase"))

        result = await parser.extract(b"image", "image/png")

        assert not result.success
        assert result.error_category == "no_products"
        assert result.ocr_text == "Thank you for your purchase"

    async def test_ocr_failure_is_categorized(self):
        ocr = AsyncMock()
        ocr.extract_text.side_effect = ExtractionError("quota", "429", retry_after=30)
        llm = make_llm()
        parser = InvoiceParser(ocr=ocr, llm=llm)

        result = await parser.extract(b"image", "image/png")

        assert not result.success
        assert result.error_category == "quota"
        assert "30 seconds" in result.error
        assert result.ocr_text is None
        llm.chat.assert_not_called()
