"""
Error handling middleware.

Standardizes all API error responses to include:
- error_code: machine-readable identifier
- message: user-facing description
- hint: suggested recovery action
"""

import traceback
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.application.dto.responses import ErrorResponse
from src.config import get_logger
from src.core.exceptions import (
    BackendAuthError,
    BackendError,
    BackendRateLimitError,
    BackendUnavailableError,
    ConfigurationError,
    ConfirmationRequiredError,
    ExtractionError,
    InsufficientStockError,
    InventoryError,
    LLMError,
    ParserError,
    ProductHasMovementsError,
    ProductNotFoundError,
    StorageError,
    ValidationError,
)

logger = get_logger(__name__)


# Map exceptions to HTTP status codes. First match wins, so subclasses come first.
EXCEPTION_STATUS_MAP: dict[type[Exception], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    InsufficientStockError: status.HTTP_409_CONFLICT,
    ConfirmationRequiredError: status.HTTP_409_CONFLICT,
    ProductNotFoundError: status.HTTP_404_NOT_FOUND,
    ProductHasMovementsError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    BackendAuthError: status.HTTP_502_BAD_GATEWAY,
    BackendRateLimitError: status.HTTP_429_TOO_MANY_REQUESTS,
    BackendUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
    BackendError: status.HTTP_502_BAD_GATEWAY,
    ExtractionError: status.HTTP_502_BAD_GATEWAY,
    ParserError: 422,
    LLMError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Hint messages per error code
HINT_MAP: dict[str, str] = {
    "PRODUCT_NOT_FOUND": "Check the product ID and try GET /api/products to list products.",
    "PRODUCT_HAS_MOVEMENTS": "Archive the product instead of deleting it.",
    "INSUFFICIENT_STOCK": "Reduce the quantity or receive stock first.",
    "CONFIRMATION_REQUIRED": "Repeat the request with confirmed=true.",
    "DELETE_CONFIRMATION_REQUIRED": "Pass confirm_name equal to the product name.",
    "INVALID_QUANTITY": "Quantity must be a positive whole number.",
    "FILE_TOO_LARGE": "Upload a smaller file.",
    "UNSUPPORTED_FILE_TYPE": "Upload a JPEG/PNG invoice or an .xlsx spreadsheet.",
    "EXTRACTION_ERROR": "Try a clearer image or enter the products manually.",
    "BACKEND_AUTH_FAILED": "Check the backend API credentials.",
    "BACKEND_RATE_LIMITED": "Wait before retrying.",
    "BACKEND_UNAVAILABLE": "The backend is unreachable. Check GET /api/health/backend.",
    "VALIDATION_ERROR": "Check the request body against the API schema.",
    "DATABASE_ERROR": "A database operation failed. Check server logs.",
    "CONFIGURATION_ERROR": "Check the environment configuration.",
}

# Default hints by HTTP status code
STATUS_HINTS: dict[int, str] = {
    400: "Check the request parameters and body.",
    404: "The requested resource was not found. Verify the ID.",
    409: "The request conflicts with the current state of the resource.",
    422: "The request could not be processed. Check the input format.",
    429: "Too many requests. Retry later.",
    500: "An internal error occurred. Check server logs.",
    502: "An upstream service rejected the request.",
    503: "The service is temporarily unavailable. Retry later.",
}


def _get_hint(error_code: str, status_code: int) -> str:
    """Resolve hint from error code, falling back to status-based hint."""
    return HINT_MAP.get(error_code) or STATUS_HINTS.get(status_code, "")


def status_for(exc: Exception) -> int:
    for exc_type, code in EXCEPTION_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(request: Request, exc: Exception) -> JSONResponse:
    """Convert exception to standardized JSON response."""
    status_code = status_for(exc)

    if isinstance(exc, InventoryError):
        error_code = exc.code
        message = exc.user_message
        detail = exc.message if exc.message != exc.user_message else None
    else:
        error_code = exc.__class__.__name__
        message = "An unexpected error occurred"
        detail = None

    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request_error",
        request_id=getattr(request.state, "request_id", None),
        path=request.url.path,
        error_type=error_code,
        status=status_code,
        error=str(exc),
        traceback=traceback.format_exc() if status_code >= 500 else None,
    )

    headers = {}
    if isinstance(exc, InventoryError) and exc.details.get("retry_after"):
        headers["Retry-After"] = str(exc.details["retry_after"])

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error_code=error_code,
            message=message,
            hint=_get_hint(error_code, status_code),
            detail=detail,
            path=request.url.path,
        ).model_dump(mode="json"),
        headers=headers or None,
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Converts exceptions that escape the route handlers to standardized
    JSON error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return error_response(request, e)


def setup_exception_handlers(app: FastAPI) -> None:
    """Set up FastAPI exception handlers."""
    from fastapi.exceptions import RequestValidationError
    from starlette.exceptions import HTTPException

    @app.exception_handler(InventoryError)
    async def inventory_exception_handler(
        request: Request,
        exc: InventoryError,
    ) -> JSONResponse:
        """Handle domain errors raised by use cases."""
        return error_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Handle Pydantic validation errors."""
        errors = []
        for error in exc.errors():
            loc = " -> ".join(str(part) for part in error["loc"])
            errors.append(f"{loc}: {error['msg']}")

        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                hint="Check the request body fields and types.",
                detail="; ".join(errors),
                path=request.url.path,
            ).model_dump(mode="json"),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(
        request: Request,
        exc: HTTPException,
    ) -> JSONResponse:
        """Handle HTTP exceptions with standardized format."""
        error_code = _infer_error_code(exc.status_code)

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error_code=error_code,
                message=exc.detail or "An error occurred",
                hint=_get_hint(error_code, exc.status_code),
                path=request.url.path,
            ).model_dump(mode="json"),
        )


def _infer_error_code(status_code: int) -> str:
    """Infer a machine-readable error code from an HTTP status."""
    return {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        422: "UNPROCESSABLE_ENTITY",
    }.get(status_code, "HTTP_ERROR")
