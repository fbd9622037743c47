"""Backend adapter implementations."""

from src.infrastructure.storage.factory import (
    create_backend_adapter,
    get_backend_adapter,
)
from src.infrastructure.storage.remote import AirtableBackend, SupabaseBackend
from src.infrastructure.storage.sqlite import (
    ConnectionPool,
    SQLiteBackend,
    close_pool,
    get_pool,
)

__all__ = [
    # Adapters
    "SQLiteBackend",
    "AirtableBackend",
    "SupabaseBackend",
    # Factory
    "create_backend_adapter",
    "get_backend_adapter",
    # Connection pool
    "ConnectionPool",
    "get_pool",
    "close_pool",
]
