"""
Health check endpoints.
"""

import time

from fastapi import APIRouter, Depends

from src.api.dependencies import get_backend_adapter, get_cache, get_llm
from src.application.dto.responses import HealthResponse, ProviderHealthResponse
from src.config import get_logger
from src.core.exceptions import InventoryError
from src.core.interfaces import IBackendAdapter, ILLMProvider
from src.core.services import QueryCache

logger = get_logger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])

# Track startup time
_start_time = time.time()


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check.

    Returns service status and uptime.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        uptime_seconds=time.time() - _start_time,
    )


@router.get("/backend", response_model=HealthResponse)
async def backend_health(
    backend: IBackendAdapter = Depends(get_backend_adapter),
    cache: QueryCache = Depends(get_cache),
) -> HealthResponse:
    """
    Backend reachability check.

    Tests the configured product store and reports cache occupancy.
    """
    start = time.time()
    try:
        available = await backend.check_health()
        error = None if available else "backend did not respond"
    except InventoryError as e:
        logger.warning("backend_health_failed", backend=backend.name, error=e.message)
        available, error = False, e.user_message

    backend_status = ProviderHealthResponse(
        name=backend.name,
        available=available,
        latency_ms=(time.time() - start) * 1000,
        error=error,
    )

    return HealthResponse(
        status="healthy" if available else "unhealthy",
        version="1.0.0",
        uptime_seconds=time.time() - _start_time,
        backend=backend_status,
        cache=cache.stats(),
    )


@router.get("/llm", response_model=HealthResponse)
async def llm_health(llm: ILLMProvider = Depends(get_llm)) -> HealthResponse:
    """
    Invoice LLM check.

    An unavailable LLM is not fatal: invoices fall back to line parsing.
    """
    health = await llm.check_health()
    if not health.available:
        logger.warning("llm_unhealthy", provider=health.provider, error=health.error)

    return HealthResponse(
        status="healthy" if health.available else "degraded",
        version="1.0.0",
        uptime_seconds=time.time() - _start_time,
        llm=ProviderHealthResponse(
            name=health.provider,
            available=health.available,
            latency_ms=health.response_time_ms,
            error=health.error,
        ),
    )
