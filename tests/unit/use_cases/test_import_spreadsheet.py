"""Tests for ImportSpreadsheetUseCase and ImportRowsUseCase."""

from io import BytesIO

import pytest
from openpyxl import Workbook

from src.application.use_cases import ImportRowsUseCase, ImportSpreadsheetUseCase
from src.config.settings import ImportSettings
from src.core.exceptions import FileTooLargeError, UnsupportedFileTypeError
from src.core.services import ImportReconciler


def xlsx(*rows) -> bytes:
    workbook = Workbook()
    for row in rows:
        workbook.active.append(list(row))
    output = BytesIO()
    workbook.save(output)
    return output.getvalue()


@pytest.fixture
def use_case(backend, cache) -> ImportSpreadsheetUseCase:
    return ImportSpreadsheetUseCase(
        import_rows=ImportRowsUseCase(ImportReconciler(backend, cache)),
        settings=ImportSettings(),
    )


class TestValidation:
    @pytest.mark.parametrize("filename", ["products.csv", "products.xls", "products"])
    def test_only_xlsx(self, use_case, filename):
        with pytest.raises(UnsupportedFileTypeError):
            use_case.validate_upload(filename, 100)

    def test_extension_case_insensitive(self, use_case):
        use_case.validate_upload("PRODUCTS.XLSX", 100)

    def test_size_limit(self, backend, cache):
        use_case = ImportSpreadsheetUseCase(
            import_rows=ImportRowsUseCase(ImportReconciler(backend, cache)),
            settings=ImportSettings(max_spreadsheet_size=10),
        )
        with pytest.raises(FileTooLargeError):
            use_case.validate_upload("products.xlsx", 11)


async def test_preview_writes_nothing(use_case, backend):
    content = xlsx(("Denumirea produsului", "Pret (euro)"), ("Tea", 2))

    result = use_case.preview(content, "products.xlsx")

    assert result.valid_rows == 1
    assert backend.calls == []


async def test_import(use_case, backend):
    content = xlsx(
        ("Cod de bare (Barcode)", "Denumirea produsului", "Stock curent"),
        ("5941234567890", "Milk again", 3),
        ("42", "Tea", 5),
        (None, None, 1),
    )

    outcome = await use_case.execute(content, "products.xlsx")

    assert len(outcome.parse.errors) == 1
    report = outcome.report
    assert (report.succeeded, report.skipped, report.failed) == (1, 1, 0)
    tea = next(p for p in backend.products.values() if p.name == "Tea")
    assert tea.current_stock == 5
    response = ImportRowsUseCase.to_response(report)
    assert response.summary == "1 imported, 1 skipped (duplicate barcode), 0 failed"


async def test_unparseable_file_imports_nothing(use_case, backend):
    outcome = await use_case.execute(b"not a workbook", "products.xlsx")

    assert not outcome.parse.success
    assert outcome.report is None
    assert backend.calls == []
