"""
Domain exceptions for the inventory application.

Provides specific exception types for different error scenarios.
"""

from typing import Any


class InventoryError(Exception):
    """Base exception for all inventory errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        # Message safe to show to an end user
        self.user_message = user_message or message

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.user_message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(InventoryError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
            user_message=message,
        )


class InvalidQuantityError(ValidationError):
    """Stock quantity is not a positive integer."""

    def __init__(self, value: Any):
        super().__init__(
            field="quantity",
            message="Please enter a valid positive quantity",
            value=value,
        )
        self.code = "INVALID_QUANTITY"


class InsufficientStockError(InventoryError):
    """Stock-out request exceeds available stock."""

    def __init__(self, product_id: str, requested: int, available: float):
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available:g}",
            code="INSUFFICIENT_STOCK",
            details={
                "product_id": product_id,
                "requested": requested,
                "available": available,
            },
            user_message=f"Insufficient stock. Only {available:g} unit(s) available",
        )


class ConfirmationRequiredError(InventoryError):
    """Large stock change was not confirmed by the caller."""

    def __init__(self, quantity: int, threshold: int):
        super().__init__(
            f"Quantity {quantity} exceeds {threshold} and requires confirmation",
            code="CONFIRMATION_REQUIRED",
            details={"quantity": quantity, "threshold": threshold},
            user_message=(
                f"You are about to change stock by {quantity} units. "
                "Please confirm this operation."
            ),
        )


class DeleteConfirmationError(ValidationError):
    """Typed confirmation did not match the product name."""

    def __init__(self, product_name: str):
        super().__init__(
            field="confirm_name",
            message=f"Type the product name '{product_name}' to confirm deletion",
        )
        self.code = "DELETE_CONFIRMATION_REQUIRED"


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds size limit."""

    def __init__(self, filename: str, size: int, max_size: int):
        super().__init__(
            field="file",
            message=(
                f"File '{filename}' is too large "
                f"({size / 1024 / 1024:.1f} MB, max {max_size / 1024 / 1024:.0f} MB)"
            ),
        )
        self.code = "FILE_TOO_LARGE"
        self.details.update(
            {
                "filename": filename,
                "size": size,
                "max_size": max_size,
            }
        )


class UnsupportedFileTypeError(ValidationError):
    """File type is not supported."""

    def __init__(self, filename: str, content_type: str, allowed: list[str]):
        if content_type == "application/pdf":
            message = "PDF support coming soon. Please upload a JPEG or PNG image."
        else:
            message = f"Unsupported file type '{content_type}'. Allowed: {', '.join(allowed)}"
        super().__init__(field="file", message=message)
        self.code = "UNSUPPORTED_FILE_TYPE"
        self.details.update(
            {
                "filename": filename,
                "content_type": content_type,
                "allowed": allowed,
            }
        )


# Storage Exceptions
class StorageError(InventoryError):
    """Base exception for storage operations."""

    pass


class ProductNotFoundError(StorageError):
    """Product not found in the backend."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product not found: {product_id}",
            code="PRODUCT_NOT_FOUND",
            details={"product_id": product_id},
            user_message="Product not found",
        )


class ProductHasMovementsError(StorageError):
    """Product cannot be deleted while stock movements reference it."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} has stock movement history",
            code="PRODUCT_HAS_MOVEMENTS",
            details={"product_id": product_id},
            user_message=(
                "Cannot delete this product because it has stock movement history. "
                "Please archive the product instead of deleting it."
            ),
        )


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
            user_message="A database error occurred. Please try again.",
        )


# Backend (remote store) Exceptions
class BackendError(InventoryError):
    """Remote backend request failed."""

    def __init__(
        self,
        backend: str,
        operation: str,
        reason: str,
        status_code: int | None = None,
        code: str = "BACKEND_ERROR",
        user_message: str | None = None,
    ):
        super().__init__(
            f"{backend} {operation} failed: {reason}",
            code=code,
            details={
                "backend": backend,
                "operation": operation,
                "reason": reason,
                "status_code": status_code,
            },
            user_message=user_message or reason,
        )


class BackendUnavailableError(BackendError):
    """Network failure or server error talking to the backend."""

    def __init__(self, backend: str, operation: str, reason: str, status_code: int | None = None):
        super().__init__(
            backend,
            operation,
            reason,
            status_code=status_code,
            code="BACKEND_UNAVAILABLE",
            user_message="Network error. Please check your connection and try again.",
        )


class BackendAuthError(BackendError):
    """Backend rejected the configured credentials."""

    def __init__(self, backend: str, operation: str, status_code: int | None = None):
        super().__init__(
            backend,
            operation,
            "authentication failed",
            status_code=status_code,
            code="BACKEND_AUTH_FAILED",
            user_message="You don't have permission to perform this action.",
        )


class BackendRateLimitError(BackendError):
    """Backend rate limit exceeded."""

    def __init__(self, backend: str, operation: str, retry_after: int | None = None):
        hint = f" Please try again in {retry_after} seconds." if retry_after else ""
        super().__init__(
            backend,
            operation,
            "rate limit exceeded",
            status_code=429,
            code="BACKEND_RATE_LIMITED",
            user_message=f"Too many requests.{hint or ' Please try again later.'}",
        )
        self.details["retry_after"] = retry_after


# LLM Exceptions
class LLMError(InventoryError):
    """Base exception for LLM operations."""

    pass


class LLMUnavailableError(LLMError):
    """LLM provider is not available."""

    def __init__(self, provider: str, reason: str | None = None):
        super().__init__(
            f"LLM provider unavailable: {provider}" + (f" - {reason}" if reason else ""),
            code="LLM_UNAVAILABLE",
            details={"provider": provider, "reason": reason},
        )


class LLMTimeoutError(LLMError):
    """LLM request timed out."""

    def __init__(self, timeout: int, operation: str = "generation"):
        super().__init__(
            f"LLM {operation} timed out after {timeout} seconds",
            code="LLM_TIMEOUT",
            details={"timeout": timeout, "operation": operation},
        )


class LLMResponseError(LLMError):
    """LLM returned invalid or empty response."""

    def __init__(self, reason: str, response: str | None = None):
        super().__init__(
            f"Invalid LLM response: {reason}",
            code="LLM_RESPONSE_ERROR",
            details={"reason": reason, "response_preview": (response or "")[:200]},
        )


class CircuitBreakerOpenError(LLMError):
    """Circuit breaker is open due to repeated failures."""

    def __init__(self, provider: str, cooldown_remaining: int):
        super().__init__(
            f"Circuit breaker open for {provider}, retry in {cooldown_remaining}s",
            code="CIRCUIT_BREAKER_OPEN",
            details={"provider": provider, "cooldown_remaining": cooldown_remaining},
        )


# Parser / extraction Exceptions
class ParserError(InventoryError):
    """Base exception for import parsing."""

    pass


EXTRACTION_MESSAGES = {
    "auth": "API authentication failed. Please contact support.",
    "quota": "Service quota exceeded. Please try again later.",
    "network": "Could not reach the extraction service. Check your connection and try again.",
    "no_text": "No text detected in the image. Please ensure the image is clear and contains text.",
    "invalid_response": "The extraction service returned an unreadable response.",
    "no_products": (
        "No products found in the invoice. Please ensure the image shows "
        "a clear invoice with product details."
    ),
    "unknown": "Failed to extract invoice data. Please try again.",
}


class ExtractionError(ParserError):
    """OCR or AI extraction failed with a categorized cause."""

    def __init__(
        self,
        category: str,
        reason: str,
        user_message: str | None = None,
        retry_after: int | None = None,
    ):
        if user_message is None:
            if category == "quota" and retry_after:
                user_message = f"API rate limit exceeded. Please try again in {retry_after} seconds"
            else:
                user_message = EXTRACTION_MESSAGES.get(category, EXTRACTION_MESSAGES["unknown"])
        super().__init__(
            f"Extraction failed ({category}): {reason}",
            code="EXTRACTION_ERROR",
            details={"category": category, "reason": reason, "retry_after": retry_after},
            user_message=user_message,
        )
        self.category = category


class ConfigurationError(InventoryError):
    """Configuration error."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)
