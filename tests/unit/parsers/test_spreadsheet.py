"""Unit tests for .xlsx import parsing and export."""

from datetime import date, datetime
from io import BytesIO

from openpyxl import Workbook, load_workbook

from src.core.entities import ImportedProduct, Product
from src.infrastructure.parsers import (
    export_filename,
    export_inventory_workbook,
    map_header,
    parse_spreadsheet,
)
from src.infrastructure.parsers.spreadsheet import EXPORT_COLUMNS, EXPORT_HEADERS, convert_value


def workbook_bytes(*rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


HEADER = (
    "Cod de bare (Barcode)",
    "Denumirea produsului",
    "Categorie",
    "Pret (euro)",
    "Cost preț magazin 70%",
    "Stock curent",
    "Stock minim",
    "Furnizor",
    "Data expirare",
)


class TestHeaders:
    def test_exact_alias(self):
        assert map_header("Denumirea produsului") == "name"

    def test_normalized_alias(self):
        assert map_header("  COST PRET MAGAZIN 100% ") == "price_100"
        assert map_header("Cost preţ magazin 50%") == "price_50"

    def test_unknown_header(self):
        assert map_header("Culoare") is None


class TestConvertValue:
    def test_numeric_barcode_becomes_digits(self):
        assert convert_value(5941234567890.0, "barcode") == "5941234567890"

    def test_number_fields(self):
        assert convert_value("2,50", "price") == 2.5
        assert convert_value("n/a", "price") is None

    def test_dates(self):
        assert convert_value(datetime(2025, 1, 31), "expiry_date") == "2025-01-31"
        assert convert_value("31.01.2025", "expiry_date") == "2025-01-31"
        assert convert_value("next week", "expiry_date") == "next week"

    def test_blank(self):
        assert convert_value("   ", "name") is None


class TestParse:
    def test_parses_rows(self):
        content = workbook_bytes(
            HEADER,
            ("5941234567890", "Milk", "Dairy", 1.2, 2.04, 12, 5, "Farm SRL", datetime(2025, 6, 1)),
            (None, "Bread", "Bakery", "0,80", None, None, None, None, None),
        )

        result = parse_spreadsheet(content)

        assert result.success
        assert result.total_rows == 2
        assert result.valid_rows == 2
        assert result.errors == []
        milk, bread = result.products
        assert milk.barcode == "5941234567890"
        assert milk.price_70 == 2.04
        assert milk.current_stock == 12
        assert milk.min_stock == 5
        assert milk.expiry_date == "2025-06-01"
        assert bread.price == 0.8
        assert bread.barcode is None

    def test_missing_name_reported_with_sheet_row(self):
        content = workbook_bytes(
            ("Denumirea produsului", "Pret (euro)"),
            ("Milk", 1),
            (None, 2),
            ("Tea", 3),
        )

        result = parse_spreadsheet(content)

        assert result.valid_rows == 2
        assert len(result.errors) == 1
        assert result.errors[0].row == 3
        assert result.errors[0].field == "name"

    def test_header_found_below_title_rows(self):
        content = workbook_bytes(
            ("Inventar magazin",),
            (),
            ("Denumirea produsului", "Categorie"),
            ("Milk", "Dairy"),
        )

        result = parse_spreadsheet(content)

        assert result.success
        assert result.total_rows == 1
        assert result.products[0].category == "Dairy"

    def test_missing_barcode_column_warns(self):
        result = parse_spreadsheet(workbook_bytes(("Denumirea produsului",), ("Milk",)))
        assert any("Barcode column not found" in w for w in result.warnings)

    def test_unrecognized_column_warns(self):
        content = workbook_bytes(
            ("Cod de bare (Barcode)", "Denumirea produsului", "Culoare"),
            ("1", "Milk", "white"),
        )
        result = parse_spreadsheet(content)
        assert result.warnings == ['Column "Culoare" was not recognized and will be skipped']

    def test_name_column_required(self):
        content = workbook_bytes(
            ("Cod de bare (Barcode)", "Categorie"),
            ("1", "Dairy"),
        )

        result = parse_spreadsheet(content)

        assert not result.success
        assert result.errors[0].row == 0
        assert "Missing required column" in result.errors[0].message

    def test_no_recognizable_headers(self):
        result = parse_spreadsheet(workbook_bytes(("a", "b"), ("1", "2")))
        assert not result.success
        assert "Could not find recognizable column headers" in result.errors[0].message

    def test_header_only(self):
        result = parse_spreadsheet(workbook_bytes(("Denumirea produsului",)))
        assert not result.success
        assert result.errors[0].message == "File must have at least a header row and one data row"

    def test_not_a_workbook(self):
        result = parse_spreadsheet(b"name,price\nMilk,1\n")
        assert not result.success
        assert result.errors[0].message.startswith("Failed to parse file")

    def test_blank_rows_skipped(self):
        content = workbook_bytes(
            ("Denumirea produsului",),
            ("Milk",),
            (None,),
            ("Tea",),
            (None,),
            (None,),
        )

        result = parse_spreadsheet(content)

        assert result.valid_rows == 2
        assert result.errors == []


class TestExport:
    def test_filename(self):
        assert export_filename(date(2024, 3, 1)) == "inventory-2024-03-01.xlsx"

    def test_layout(self):
        products = [
            Product(
                id="1",
                name="Milk",
                barcode="590",
                price=1.2,
                current_stock=4,
                min_stock_level=2,
                expiry_date=date(2025, 1, 1),
            )
        ]

        sheet = load_workbook(BytesIO(export_inventory_workbook(products))).active
        rows = list(sheet.iter_rows(values_only=True))

        assert list(rows[0]) == [EXPORT_HEADERS[c] for c in EXPORT_COLUMNS]
        assert sheet.cell(row=1, column=1).font.bold
        record = dict(zip(EXPORT_COLUMNS, rows[1]))
        assert record["name"] == "Milk"
        assert record["current_stock"] == 4
        assert record["min_stock"] == 2
        assert record["expiry_date"] == "2025-01-01"

    def test_export_then_import_keeps_names_barcodes_prices(self):
        products = [
            Product(id="1", name="Milk", barcode="5941234567890", price=1.2, price_50=1.8),
            Product(id="2", name="Bread", price=0.8, price_100=1.6),
            Product(id="3", name="Tea", barcode="42", category="Drinks"),
        ]

        result = parse_spreadsheet(export_inventory_workbook(products))

        assert result.success
        assert result.warnings == []
        imported = {p.name: p for p in result.products}
        for product in products:
            row: ImportedProduct = imported[product.name]
            assert row.barcode == product.barcode
            assert row.price == product.price
            assert row.price_50 == product.price_50
            assert row.price_100 == product.price_100
