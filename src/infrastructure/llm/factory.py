"""
LLM provider factory.

Creates appropriate provider based on configuration.
"""

from src.config import get_logger, get_settings
from src.core.interfaces import ILLMProvider

logger = get_logger(__name__)


def get_llm_provider(provider_type: str | None = None) -> ILLMProvider:
    """
    Get an LLM provider instance.

    Args:
        provider_type: "openai" (default from settings)
    """
    provider_type = provider_type or get_settings().llm.provider

    if provider_type == "openai":
        from src.infrastructure.llm.openai import get_openai_provider

        return get_openai_provider()

    raise ValueError(f"Unknown LLM provider: {provider_type}")

