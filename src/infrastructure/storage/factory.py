"""
Backend adapter factory.

The active store is chosen once from settings at startup.
"""

from src.config import Settings, get_logger, get_settings
from src.core.exceptions import ConfigurationError
from src.core.interfaces.backend import IBackendAdapter
from src.infrastructure.storage.remote.airtable import AirtableBackend
from src.infrastructure.storage.remote.supabase import SupabaseBackend
from src.infrastructure.storage.sqlite.backend import SQLiteBackend

logger = get_logger(__name__)

_backend: IBackendAdapter | None = None


def create_backend_adapter(settings: Settings | None = None) -> IBackendAdapter:
    """
    Build the adapter named by ``settings.backend.provider``.

    Raises:
        ConfigurationError: provider unknown or missing credentials
    """
    settings = settings or get_settings()
    provider = settings.backend.provider

    if provider == "sqlite":
        backend: IBackendAdapter = SQLiteBackend(history_limit=settings.backend.history_limit)
    elif provider == "airtable":
        if not settings.airtable.is_configured:
            raise ConfigurationError(
                "Airtable backend selected but AIRTABLE_API_KEY / AIRTABLE_BASE_ID are not set",
                details={"provider": provider},
            )
        backend = AirtableBackend(settings.airtable, timeout=settings.backend.request_timeout)
    elif provider == "supabase":
        if not settings.supabase.is_configured:
            raise ConfigurationError(
                "Supabase backend selected but SUPABASE_URL / SUPABASE_SERVICE_KEY are not set",
                details={"provider": provider},
            )
        backend = SupabaseBackend(
            settings.supabase,
            timeout=settings.backend.request_timeout,
            history_limit=settings.backend.history_limit,
        )
    else:
        raise ConfigurationError(f"Unknown backend provider: {provider}")

    logger.info("backend_adapter_created", provider=provider)
    return backend


def get_backend_adapter() -> IBackendAdapter:
    """Get or create the process-wide backend adapter."""
    global _backend
    if _backend is None:
        _backend = create_backend_adapter()
    return _backend

