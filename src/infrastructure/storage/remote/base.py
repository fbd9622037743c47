"""
Shared HTTP plumbing for the hosted backends.

Maps transport failures and HTTP status codes onto the backend error
taxonomy so callers see one set of exceptions whichever store is active.
"""

from typing import Any

import httpx

from src.config import get_logger
from src.core.exceptions import (
    BackendAuthError,
    BackendError,
    BackendRateLimitError,
    BackendUnavailableError,
)

logger = get_logger(__name__)


def _retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value and value.isdigit():
        return int(value)
    return None


def _error_code(response: httpx.Response) -> str | None:
    """Store-specific error code from the body, e.g. a Postgres SQLSTATE."""
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("code") is not None:
        return str(body["code"])
    return None


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or error.get("type") or error)
        return str(body.get("message") or error or body)[:200]
    return str(body)[:200]


class HTTPBackendBase:
    """httpx client holder with status-to-exception mapping."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        headers: dict[str, str],
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ):
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request and raise a backend error for any failure status."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"{self.name}_request_timeout", operation=operation, error=str(e))
            raise BackendUnavailableError(self.name, operation, "request timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"{self.name}_request_failed", operation=operation, error=str(e))
            raise BackendUnavailableError(self.name, operation, str(e)) from e

        if response.is_success:
            return response

        self._raise_for_status(response, operation)
        return response

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        status = response.status_code
        reason = _error_text(response)
        logger.error(
            f"{self.name}_request_rejected",
            operation=operation,
            status_code=status,
            reason=reason,
        )
        error: BackendError
        if status in (401, 403):
            error = BackendAuthError(self.name, operation, status_code=status)
        elif status == 429:
            error = BackendRateLimitError(self.name, operation, retry_after=_retry_after(response))
        elif status >= 500:
            error = BackendUnavailableError(self.name, operation, reason, status_code=status)
        else:
            error = BackendError(self.name, operation, reason, status_code=status)
        error.details["backend_code"] = _error_code(response)
        raise error
