"""API route modules."""

from src.api.routes.health import router as health_router
from src.api.routes.imports import export_router as exports_router
from src.api.routes.imports import router as imports_router
from src.api.routes.products import router as products_router
from src.api.routes.stock import router as stock_router

__all__ = [
    "health_router",
    "products_router",
    "stock_router",
    "imports_router",
    "exports_router",
]
