"""Product list and product management endpoints."""

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_list_inventory_use_case, get_manage_product_use_case
from src.application.dto.requests import CreateProductRequest, UpdateProductRequest
from src.application.dto.responses import (
    ErrorResponse,
    LowStockAlertResponse,
    ProductListResponse,
    ProductResponse,
    StockMovementResponse,
)
from src.application.use_cases import (
    ListInventoryUseCase,
    ManageProductUseCase,
    product_to_response,
)
from src.core.entities import InventoryFilters, SortDirection, SortField

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    search: str = Query(default="", description="Case-insensitive name or barcode match"),
    category: str = Query(default="", description="Exact category"),
    low_stock_only: bool = False,
    sort_field: SortField = SortField.NAME,
    sort_direction: SortDirection = SortDirection.ASC,
    refresh: bool = Query(default=False, description="Bypass the cache"),
    use_case: ListInventoryUseCase = Depends(get_list_inventory_use_case),
) -> ProductListResponse:
    """Filtered, sorted inventory list."""
    filters = InventoryFilters(
        search_query=search,
        category=category,
        low_stock_only=low_stock_only,
        sort_field=sort_field,
        sort_direction=sort_direction,
    )
    view = await use_case.execute(filters, refresh=refresh)
    return use_case.to_response(view)


@router.get("/low-stock", response_model=list[LowStockAlertResponse])
async def low_stock(
    use_case: ListInventoryUseCase = Depends(get_list_inventory_use_case),
) -> list[LowStockAlertResponse]:
    """Products below their reorder point, largest deficit first."""
    return use_case.alerts_to_response(await use_case.low_stock())


@router.get(
    "/barcode/{barcode}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_by_barcode(
    barcode: str,
    use_case: ManageProductUseCase = Depends(get_manage_product_use_case),
) -> ProductResponse:
    """Exact barcode lookup (scanner flow)."""
    return product_to_response(await use_case.get_by_barcode(barcode))


@router.post(
    "",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def create_product(
    request: CreateProductRequest,
    use_case: ManageProductUseCase = Depends(get_manage_product_use_case),
) -> ProductResponse:
    """Create a product with zero stock."""
    return product_to_response(await use_case.create(request))


@router.patch(
    "/{product_id}",
    response_model=ProductResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_product(
    product_id: str,
    request: UpdateProductRequest,
    use_case: ManageProductUseCase = Depends(get_manage_product_use_case),
) -> ProductResponse:
    """Update the fields present in the body."""
    return product_to_response(await use_case.update(product_id, request))


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def delete_product(
    product_id: str,
    confirm_name: str = Query(default="", description="Must equal the product name"),
    use_case: ManageProductUseCase = Depends(get_manage_product_use_case),
) -> None:
    """Delete a product after typed-name confirmation."""
    await use_case.delete(product_id, confirm_name)


@router.get(
    "/{product_id}/movements",
    response_model=list[StockMovementResponse],
)
async def get_movements(
    product_id: str,
    use_case: ManageProductUseCase = Depends(get_manage_product_use_case),
) -> list[StockMovementResponse]:
    """Recent stock movements, newest first."""
    movements = await use_case.movements(product_id)
    return [use_case.movement_to_response(m) for m in movements]
