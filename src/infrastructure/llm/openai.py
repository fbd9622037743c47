"""
OpenAI chat completions provider.

Used to structure OCR text into invoice JSON.
"""

import time

import httpx

from src.config import get_logger
from src.config.settings import LLMSettings
from src.core.exceptions import LLMResponseError, LLMUnavailableError
from src.core.interfaces import HealthStatus, LLMResponse
from src.infrastructure.llm.base import BaseLLMProvider

logger = get_logger(__name__)


class OpenAIProvider(BaseLLMProvider):
    """OpenAI-compatible HTTP API provider."""

    provider_name = "openai"

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(settings)
        self.model = self.settings.model_name
        self.base_url = self.settings.base_url.rstrip("/")
        self.timeout = self.settings.timeout
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.api_key)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: dict) -> dict:
        if self._client is not None:
            response = await self._client.post(
                f"{self.base_url}/{path}", json=payload, headers=self._headers()
            )
        else:
            async with httpx.AsyncClient(timeout=self.timeout + 5) as client:
                response = await client.post(
                    f"{self.base_url}/{path}",
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )

        if response.status_code == 401:
            raise LLMUnavailableError("openai", "authentication failed (HTTP 401)")
        if response.status_code == 429:
            raise LLMUnavailableError("openai", "quota or rate limit exceeded (HTTP 429)")
        if response.status_code != 200:
            raise LLMUnavailableError(
                "openai", f"HTTP {response.status_code}: {response.text[:200]}"
            )
        try:
            body = response.json()
        except ValueError as e:
            raise LLMResponseError("Body is not JSON", response.text) from e
        if not isinstance(body, dict):
            raise LLMResponseError("Body is not a JSON object", response.text)
        return body

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Chat completion with message history."""
        if not self.is_configured:
            raise LLMUnavailableError("openai", "API key not configured")

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.settings.temperature,
            "max_tokens": max_tokens or self.settings.max_tokens,
        }

        async def _do_chat() -> LLMResponse:
            start_time = time.time()
            result = await self._post("chat/completions", payload)
            elapsed = time.time() - start_time

            choices = result.get("choices") or []
            message = choices[0].get("message", {}) if choices else {}
            text = message.get("content") or ""
            if not text.strip():
                raise LLMResponseError("Empty response", text)

            usage = result.get("usage") or {}
            logger.info(
                "openai_chat",
                model=self.model,
                messages=len(messages),
                response_len=len(text),
                elapsed_ms=int(elapsed * 1000),
            )
            return LLMResponse(
                text=text,
                model=result.get("model", self.model),
                done_reason=choices[0].get("finish_reason") if choices else None,
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )

        return await self._with_resilience(_do_chat)

    async def check_health(self) -> HealthStatus:
        if not self.is_configured:
            status = HealthStatus(
                available=False,
                provider="openai",
                model=self.model,
                error="API key not configured",
            )
            self._update_health_cache(status)
            return status

        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=10) as client:
                response = await client.get(f"{self.base_url}/models", headers=self._headers())
            available = response.status_code == 200
            error = None if available else f"HTTP {response.status_code}"
        except httpx.HTTPError as e:
            available, error = False, str(e)

        status = HealthStatus(
            available=available,
            provider="openai",
            model=self.model,
            error=error,
            response_time_ms=(time.time() - start_time) * 1000,
        )
        self._update_health_cache(status)
        return status


# Singleton instance
_provider: OpenAIProvider | None = None


def get_openai_provider() -> OpenAIProvider:
    """Get or create singleton OpenAI provider."""
    global _provider
    if _provider is None:
        _provider = OpenAIProvider()
    return _provider
