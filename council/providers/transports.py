"""Vendor HTTP transports for provider ``invoke`` capabilities.

Architectural role:
    Turns one prompt into one HTTP call against a vendor endpoint and extracts
    the response text. Transports do not retry; retry, timeout and fallback
    belong to ``council.execution.cascade``.

Supported wire formats:
    - OpenAI-compatible chat completions (Groq, Cerebras, OpenRouter,
      DeepSeek, OpenAI)
    - Gemini ``generateContent``
    - Anthropic messages

Failure handling model:
    Non-2xx responses raise ``ProviderHTTPError`` (retry classification is on
    the exception), transport timeouts raise ``ProviderTimeoutError``, blank
    text raises ``EmptyResponseError`` and unparseable bodies raise a terminal
    ``ProviderError``.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..core.exceptions import (
    EmptyResponseError,
    ProviderError,
    ProviderHTTPError,
    ProviderTimeoutError,
)

ANTHROPIC_VERSION = "2023-06-01"


class _HTTPTransport(ABC):
    """Shared request/response plumbing."""

    def __init__(
        self,
        name: str,
        url: str,
        api_key: str,
        model: str,
        *,
        max_tokens: int = 2048,
        timeout_s: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.name = name
        self.url = url
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s
        self._api_key = api_key
        self._client = client

    @abstractmethod
    def headers(self) -> dict[str, str]:
        """Request headers, including authentication."""

    @abstractmethod
    def payload(self, prompt: str) -> dict[str, Any]:
        """JSON request body for one prompt."""

    @abstractmethod
    def extract_text(self, data: dict[str, Any]) -> str | None:
        """Response text from a decoded body; raises on an unexpected shape."""

    def request_url(self) -> str:
        return self.url

    async def __call__(self, prompt: str) -> str:
        try:
            if self._client is not None:
                response = await self._client.post(
                    self.request_url(), headers=self.headers(), json=self.payload(prompt)
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_s) as client:
                    response = await client.post(
                        self.request_url(), headers=self.headers(), json=self.payload(prompt)
                    )
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(self.name, self.timeout_s) from exc
        except httpx.RequestError as exc:
            raise ProviderError(
                detail=f"request failed: {type(exc).__name__}",
                provider=self.name,
                original_error=exc,
            ) from exc

        if response.status_code >= 400:
            raise ProviderHTTPError(self.name, response.status_code, response.text)

        try:
            text = self.extract_text(response.json())
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError(
                detail="malformed response", provider=self.name, original_error=exc
            ) from exc

        if not text or not text.strip():
            raise EmptyResponseError(self.name)
        return text.strip()


class OpenAICompatibleTransport(_HTTPTransport):
    """Chat-completions endpoint with bearer auth."""

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }

    def payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
        }

    def extract_text(self, data: dict[str, Any]) -> str | None:
        return data["choices"][0]["message"]["content"]


class GeminiTransport(_HTTPTransport):
    """Gemini ``generateContent``; ``url`` is a template with ``{model}``."""

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self._api_key,
        }

    def request_url(self) -> str:
        return self.url.format(model=self.model)

    def payload(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"maxOutputTokens": self.max_tokens},
        }

    def extract_text(self, data: dict[str, Any]) -> str | None:
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        parts = candidates[0].get("content", {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)


class AnthropicTransport(_HTTPTransport):
    """Anthropic messages endpoint."""

    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }

    def extract_text(self, data: dict[str, Any]) -> str | None:
        blocks = data.get("content") or []
        return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")
