"""
Abstract interface for LLM providers.

Used to turn OCR text into structured invoice data.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class LLMResponse:
    """Response from LLM generation."""

    text: str
    model: str
    done: bool = True
    done_reason: str | None = None
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    error: str | None = None


@dataclass
class HealthStatus:
    """External service health status."""

    available: bool
    provider: str
    model: str | None = None
    error: str | None = None
    response_time_ms: float | None = None


class ILLMProvider(ABC):
    """
    Abstract interface for LLM providers.

    Implementations: OpenAIProvider
    """

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> LLMResponse:
        """
        Chat completion with message history.

        Args:
            messages: List of {"role": "user"|"assistant"|"system", "content": "..."}
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            LLMResponse with assistant reply
        """
        pass

    @abstractmethod
    async def check_health(self) -> HealthStatus:
        """Check if the LLM provider is reachable."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Synchronous availability check (cached).

        Returns:
            True if provider is configured and its circuit is closed
        """
        pass
