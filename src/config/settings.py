"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BackendSettings(BaseSettings):
    """Backend adapter selection."""

    model_config = SettingsConfigDict(env_prefix="BACKEND_")

    provider: Literal["sqlite", "airtable", "supabase"] = "sqlite"
    history_limit: int = 100
    request_timeout: float = 15.0


class StorageSettings(BaseSettings):
    """Local SQLite storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockroom.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class AirtableSettings(BaseSettings):
    """Airtable REST backend configuration."""

    model_config = SettingsConfigDict(env_prefix="AIRTABLE_")

    api_key: str = ""
    base_id: str = ""
    api_url: str = "https://api.airtable.com/v0"
    products_table: str = "Products"
    movements_table: str = "Stock Movements"
    history_limit: int = 10

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.base_id)


class SupabaseSettings(BaseSettings):
    """Supabase (PostgREST) backend configuration."""

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = ""
    service_key: str = ""
    products_table: str = "products"
    movements_table: str = "stock_movements"

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.service_key)


class OCRSettings(BaseSettings):
    """Google Cloud Vision OCR configuration."""

    model_config = SettingsConfigDict(env_prefix="OCR_")

    api_key: str = ""
    endpoint: str = "https://vision.googleapis.com/v1/images:annotate"
    timeout: int = 30


class LLMSettings(BaseSettings):
    """LLM provider configuration (invoice structuring)."""

    model_config = SettingsConfigDict(env_prefix="LLM_")

    provider: Literal["openai"] = "openai"
    api_key: str = ""
    base_url: str = "https://api.openai.com/v1"
    model_name: str = "gpt-4o-mini"
    timeout: int = 30
    max_tokens: int = 2000
    temperature: float = 0.0

    # Circuit breaker settings
    failure_threshold: int = 3
    cooldown_seconds: int = 60

    # Retry settings
    max_retries: int = 3
    retry_delay: float = 1.0
    retry_multiplier: float = 2.0


class InventorySettings(BaseSettings):
    """Inventory pipeline behaviour."""

    model_config = SettingsConfigDict(env_prefix="INVENTORY_")

    stale_time: float = 300.0  # seconds
    large_quantity_threshold: int = 50
    default_markup: Literal[50, 70, 100] = 70
    import_error_limit: int = 10


class ImportSettings(BaseSettings):
    """Upload limits for spreadsheet and invoice imports."""

    model_config = SettingsConfigDict(env_prefix="IMPORT_")

    max_invoice_size: int = 10 * 1024 * 1024  # 10 MB
    max_spreadsheet_size: int = 20 * 1024 * 1024  # 20 MB
    allowed_invoice_types: list[str] = ["image/jpeg", "image/jpg", "image/png"]
    header_search_rows: int = 5


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Stockroom"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    backend: BackendSettings = Field(default_factory=BackendSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    airtable: AirtableSettings = Field(default_factory=AirtableSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    ocr: OCRSettings = Field(default_factory=OCRSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    inventory: InventorySettings = Field(default_factory=InventorySettings)
    imports: ImportSettings = Field(default_factory=ImportSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
