"""Tests for import and export endpoints."""

from io import BytesIO
from unittest.mock import AsyncMock

import pytest
from openpyxl import Workbook, load_workbook

from src.api.dependencies import get_extract_invoice_use_case
from src.application.use_cases import ExtractInvoiceUseCase
from src.core.entities import InvoiceData, InvoiceExtractionResult, InvoiceProduct
from src.infrastructure.parsers import XLSX_MEDIA_TYPE


@pytest.fixture(autouse=True)
def _wired(wire_app):
    return wire_app


def xlsx_upload(*rows, filename: str = "products.xlsx") -> dict:
    workbook = Workbook()
    for row in rows:
        workbook.active.append(list(row))
    output = BytesIO()
    workbook.save(output)
    return {"file": (filename, output.getvalue(), XLSX_MEDIA_TYPE)}


PRODUCT_ROWS = (
    ("Cod de bare (Barcode)", "Denumirea produsului", "Pret (euro)", "Stock curent"),
    ("5941234567890", "Milk duplicate", 1.2, 4),
    ("777", "Coffee", 6.5, 3),
    (None, "Sugar", 1.1, None),
)


class TestSpreadsheet:
    async def test_preview(self, async_client, backend):
        response = await async_client.post(
            "/api/imports/spreadsheet/preview", files=xlsx_upload(*PRODUCT_ROWS)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid_rows"] == 3
        assert body["products"][1]["name"] == "Coffee"
        assert backend.calls == []

    async def test_import(self, async_client, backend):
        response = await async_client.post(
            "/api/imports/spreadsheet", files=xlsx_upload(*PRODUCT_ROWS)
        )

        assert response.status_code == 200
        report = response.json()["report"]
        assert report["summary"] == "2 imported, 1 skipped (duplicate barcode), 0 failed"
        assert report["refreshed"] is True
        coffee = next(p for p in backend.products.values() if p.name == "Coffee")
        assert coffee.current_stock == 3

    async def test_wrong_extension(self, async_client):
        response = await async_client.post(
            "/api/imports/spreadsheet",
            files={"file": ("products.csv", b"name\nMilk\n", "text/csv")},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "UNSUPPORTED_FILE_TYPE"

    async def test_missing_name_column(self, async_client, backend):
        response = await async_client.post(
            "/api/imports/spreadsheet",
            files=xlsx_upload(("Cod de bare (Barcode)", "Pret (euro)"), ("1", 2)),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["parse"]["success"] is False
        assert body["report"] is None
        assert backend.count("create_product") == 0


async def test_import_rows(async_client, backend):
    response = await async_client.post(
        "/api/imports/rows",
        json={
            "rows": [
                {"name": "Tea", "barcode": "42", "current_stock": 2},
                {"name": "Bread again", "barcode": "5940000000012"},
            ]
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["succeeded"], body["skipped"], body["failed"]) == (1, 1, 0)
    assert len(body["created_ids"]) == 1


async def test_import_rows_requires_rows(async_client):
    response = await async_client.post("/api/imports/rows", json={})
    assert response.status_code == 422


class TestInvoice:
    @pytest.fixture
    def parser(self, wire_app) -> AsyncMock:
        parser = AsyncMock()
        parser.extract.return_value = InvoiceExtractionResult(
            success=True,
            data=InvoiceData(
                supplier="Farm SRL",
                products=[InvoiceProduct(name="Coffee", quantity=3, unit_price=6.5)],
            ),
            ocr_text="Coffee 3 6.50 19.50",
            used_fallback=True,
        )
        wire_app.dependency_overrides[get_extract_invoice_use_case] = (
            lambda: ExtractInvoiceUseCase(parser=parser)
        )
        return parser

    async def test_preview(self, async_client, parser):
        response = await async_client.post(
            "/api/imports/invoice/preview",
            files={"file": ("invoice.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["used_fallback"] is True
        assert body["data"]["products"][0]["name"] == "Coffee"
        parser.extract.assert_awaited_once()

    async def test_pdf_rejected(self, async_client, parser):
        response = await async_client.post(
            "/api/imports/invoice/preview",
            files={"file": ("invoice.pdf", b"%PDF-1.4", "application/pdf")},
        )

        assert response.status_code == 400
        assert "PDF support coming soon" in response.json()["message"]
        parser.extract.assert_not_called()


async def test_export(async_client):
    response = await async_client.get("/api/exports/spreadsheet")

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert 'filename="inventory-' in response.headers["content-disposition"]
    sheet = load_workbook(BytesIO(response.content)).active
    names = [row[1] for row in sheet.iter_rows(min_row=2, values_only=True)]
    assert names == ["Bread", "Milk"]
