"""OpenRouter text-generation client via the OpenAI-compatible SDK."""
from __future__ import annotations

from typing import Any, Protocol

from city_research.config import settings


class TextGenerationClient(Protocol):
    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> Any: ...


class OpenRouterTextClient:
    """Chat-completions wrapper. Returns the raw SDK response."""

    def __init__(self, openai_client: Any):
        self._client = openai_client

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> Any:
        return await self._client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )


def first_message_content(response: Any) -> str:
    """Read choices[0].message.content from an SDK object or a plain dict."""
    choices = _field(response, "choices") or []
    if not choices:
        return ""
    message = _field(choices[0], "message")
    content = _field(message, "content") if message is not None else None
    return content if isinstance(content, str) else ""


def usage_tokens(response: Any) -> tuple[int, int]:
    usage = _field(response, "usage")
    if usage is None:
        return 0, 0
    return (
        int(_field(usage, "prompt_tokens") or 0),
        int(_field(usage, "completion_tokens") or 0),
    )


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def get_client() -> OpenRouterTextClient:
    """Get OpenRouter client via OpenAI-compatible SDK."""
    from openai import AsyncOpenAI

    base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    openai_client = AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=base_url,
        timeout=settings.llm_timeout_seconds,
        max_retries=0,
    )
    return OpenRouterTextClient(openai_client)


def get_model() -> str:
    return settings.research_model


_client: OpenRouterTextClient | None = None


def client() -> OpenRouterTextClient:
    """Get or create the text-generation client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client
