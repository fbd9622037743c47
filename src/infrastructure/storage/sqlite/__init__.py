"""SQLite storage implementation."""

from src.infrastructure.storage.sqlite.backend import SQLiteBackend
from src.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)

__all__ = [
    "SQLiteBackend",
    "ConnectionPool",
    "get_pool",
    "close_pool",
]
