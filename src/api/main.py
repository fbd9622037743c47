"""
FastAPI application factory.

Creates and configures the main application instance.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import ErrorHandlerMiddleware, LoggingMiddleware
from src.api.middleware.error_handler import setup_exception_handlers
from src.api.routes import (
    exports_router,
    health_router,
    imports_router,
    products_router,
    stock_router,
)
from src.config import configure_logging, get_logger, get_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan handler.

    Initializes resources on startup and cleans up on shutdown.
    """
    configure_logging()
    settings = get_settings()

    logger.info(
        "application_starting",
        host=settings.api.host,
        port=settings.api.port,
        debug=settings.api.debug,
        backend=settings.backend.provider,
    )

    if settings.backend.provider == "sqlite":
        try:
            from src.infrastructure.storage.sqlite import get_pool
            from src.infrastructure.storage.sqlite.migrations import run_migrations

            await run_migrations()
            logger.info("database_initialized")

            await get_pool()
            logger.info("connection_pool_ready")

        except Exception as e:
            logger.error("database_init_failed", error=str(e))
            raise

    # Fail fast on a misconfigured backend
    from src.infrastructure.storage import get_backend_adapter

    backend = get_backend_adapter()
    logger.info("backend_ready", backend=backend.name)

    logger.info("application_started")

    yield

    # Shutdown
    logger.info("application_stopping")

    aclose = getattr(backend, "aclose", None)
    if aclose is not None:
        try:
            await aclose()
            logger.info("backend_client_closed", backend=backend.name)
        except Exception as e:
            logger.warning("backend_client_close_failed", error=str(e))

    if settings.backend.provider == "sqlite":
        try:
            from src.infrastructure.storage.sqlite import close_pool

            await close_pool()
            logger.info("connection_pool_closed")

        except Exception as e:
            logger.warning("connection_pool_close_failed", error=str(e))

    logger.info("application_stopped")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Stockroom Inventory API",
        description="Inventory list, stock movements, spreadsheet and invoice imports",
        version=settings.app_version,
        docs_url="/docs" if settings.api.debug else None,
        redoc_url="/redoc" if settings.api.debug else None,
        lifespan=lifespan,
    )

    # Add middleware
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(ErrorHandlerMiddleware)

    # CORS
    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Disposition", "X-Request-ID"],
        )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Register routers
    app.include_router(health_router)
    app.include_router(products_router)
    app.include_router(stock_router)
    app.include_router(imports_router)
    app.include_router(exports_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """API info."""
        return {
            "name": "Stockroom Inventory API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    # Root health endpoint (for k8s/docker health checks)
    @app.get("/health")
    async def root_health() -> dict[str, str]:
        """Simple health check at root level."""
        return {
            "status": "healthy",
            "version": settings.app_version,
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.api.main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.debug,
    )
