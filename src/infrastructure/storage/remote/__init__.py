"""Hosted backend adapters."""

from src.infrastructure.storage.remote.airtable import AirtableBackend
from src.infrastructure.storage.remote.base import HTTPBackendBase
from src.infrastructure.storage.remote.supabase import SupabaseBackend

__all__ = [
    "AirtableBackend",
    "SupabaseBackend",
    "HTTPBackendBase",
]
