"""LLM infrastructure implementations."""

from src.core.interfaces.llm import ILLMProvider
from src.infrastructure.llm.base import BaseLLMProvider, CircuitBreakerState
from src.infrastructure.llm.factory import get_llm_provider
from src.infrastructure.llm.openai import OpenAIProvider, get_openai_provider

__all__ = [
    # Interface
    "ILLMProvider",
    # Base
    "BaseLLMProvider",
    "CircuitBreakerState",
    # OpenAI
    "OpenAIProvider",
    "get_openai_provider",
    # Factory
    "get_llm_provider",
]
