"""Spreadsheet and invoice import endpoints, and spreadsheet export."""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from src.api.dependencies import (
    get_export_inventory_use_case,
    get_extract_invoice_use_case,
    get_import_rows_use_case,
    get_import_spreadsheet_use_case,
)
from src.application.dto.requests import ImportRowsRequest
from src.application.dto.responses import (
    ErrorResponse,
    ImportReportResponse,
    InvoicePreviewResponse,
    SpreadsheetImportResponse,
)
from src.application.use_cases import (
    ExportInventoryUseCase,
    ExtractInvoiceUseCase,
    ImportRowsUseCase,
    ImportSpreadsheetUseCase,
)
from src.core.entities import SpreadsheetParseResult
from src.infrastructure.parsers import XLSX_MEDIA_TYPE

router = APIRouter(prefix="/api/imports", tags=["imports"])
export_router = APIRouter(prefix="/api/exports", tags=["exports"])

UPLOAD_ERRORS = {400: {"model": ErrorResponse}}


@router.post(
    "/spreadsheet/preview",
    response_model=SpreadsheetParseResult,
    responses=UPLOAD_ERRORS,
)
async def preview_spreadsheet(
    file: UploadFile = File(..., description=".xlsx workbook"),
    use_case: ImportSpreadsheetUseCase = Depends(get_import_spreadsheet_use_case),
) -> SpreadsheetParseResult:
    """Parse a workbook without importing it."""
    content = await file.read()
    return use_case.preview(content, file.filename or "upload.xlsx")


@router.post(
    "/spreadsheet",
    response_model=SpreadsheetImportResponse,
    responses=UPLOAD_ERRORS,
)
async def import_spreadsheet(
    file: UploadFile = File(..., description=".xlsx workbook"),
    use_case: ImportSpreadsheetUseCase = Depends(get_import_spreadsheet_use_case),
) -> SpreadsheetImportResponse:
    """Parse a workbook and import every valid row."""
    content = await file.read()
    result = await use_case.execute(content, file.filename or "upload.xlsx")
    return SpreadsheetImportResponse(
        parse=result.parse,
        report=ImportRowsUseCase.to_response(result.report) if result.report else None,
    )


@router.post(
    "/invoice/preview",
    response_model=InvoicePreviewResponse,
    responses=UPLOAD_ERRORS,
)
async def preview_invoice(
    file: UploadFile = File(..., description="JPEG or PNG invoice image"),
    use_case: ExtractInvoiceUseCase = Depends(get_extract_invoice_use_case),
) -> InvoicePreviewResponse:
    """
    Read products off an invoice image.

    Extraction failures come back with success=false and a user-facing
    error message. Rows are imported via POST /api/imports/rows.
    """
    content = await file.read()
    result = await use_case.execute(content, file.filename or "invoice", file.content_type)
    return use_case.to_response(result)


@router.post("/rows", response_model=ImportReportResponse)
async def import_rows(
    request: ImportRowsRequest,
    use_case: ImportRowsUseCase = Depends(get_import_rows_use_case),
) -> ImportReportResponse:
    """Import rows confirmed from a preview."""
    report = await use_case.execute(request.rows)
    return use_case.to_response(report)


@export_router.get(
    "/spreadsheet",
    response_class=Response,
    responses={200: {"content": {XLSX_MEDIA_TYPE: {}}}},
)
async def export_spreadsheet(
    use_case: ExportInventoryUseCase = Depends(get_export_inventory_use_case),
) -> Response:
    """Download the inventory as .xlsx."""
    result = await use_case.execute()
    return Response(
        content=result.content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )
