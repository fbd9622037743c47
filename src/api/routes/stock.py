"""Stock adjustment endpoints."""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_adjust_stock_use_case, get_checkout_use_case
from src.application.dto.requests import AdjustStockRequest, CheckoutRequest, QuickAdjustRequest
from src.application.dto.responses import AdjustStockResponse, CheckoutResponse, ErrorResponse
from src.application.use_cases import AdjustStockUseCase, CheckoutUseCase
from src.core.services import MutationStatus

router = APIRouter(prefix="/api/stock", tags=["stock"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post("/{product_id}/adjust", response_model=AdjustStockResponse, responses=ERROR_RESPONSES)
async def adjust_stock(
    product_id: str,
    request: AdjustStockRequest,
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> AdjustStockResponse:
    """
    Record an IN or OUT movement.

    Quantities above the large-change threshold need confirmed=true.
    """
    result = await use_case.execute(product_id, request)
    product = None
    if result.status == MutationStatus.CONFIRMED:
        product = await use_case.current_product(product_id)
    return use_case.to_response(result, product)


@router.post(
    "/{product_id}/quick-adjust", response_model=AdjustStockResponse, responses=ERROR_RESPONSES
)
async def quick_adjust(
    product_id: str,
    request: QuickAdjustRequest,
    use_case: AdjustStockUseCase = Depends(get_adjust_stock_use_case),
) -> AdjustStockResponse:
    """Signed +/- change from the list view."""
    result = await use_case.quick_adjust(product_id, request)
    product = None
    if result.status == MutationStatus.CONFIRMED:
        product = await use_case.current_product(product_id)
    return use_case.to_response(result, product)


@router.post("/checkout", response_model=CheckoutResponse, responses=ERROR_RESPONSES)
async def checkout(
    request: CheckoutRequest,
    use_case: CheckoutUseCase = Depends(get_checkout_use_case),
) -> CheckoutResponse:
    """
    Mark a cart as paid and remove its items from stock.

    A cart with an unknown product or too little stock is rejected with
    nothing written. A backend failure mid-cart leaves a partial checkout;
    the per-line status says which items were sold.
    """
    result = await use_case.execute(request)
    return use_case.to_response(result)
