"""Plain chat-completions adapters (Mistral, OpenRouter).

No request-variant fallback: one request with ``max_tokens`` 2048.
"""

from __future__ import annotations

import httpx

from app.models.agent import ChatMessage, ProviderCredentials
from app.services.providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    ChatResult,
    HttpProvider,
    to_wire_messages,
)


class ChatCompletionsProvider(HttpProvider):
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str,
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    def _headers(self, credentials: ProviderCredentials) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {credentials.api_key}",
            "Content-Type": "application/json",
        }

    async def call(
        self,
        credentials: ProviderCredentials,
        model: str,
        messages: list[ChatMessage],
    ) -> ChatResult:
        response = await self._post(
            f"{self.base_url}/chat/completions",
            headers=self._headers(credentials),
            payload={
                "model": model,
                "messages": to_wire_messages(messages),
                "max_tokens": DEFAULT_MAX_OUTPUT_TOKENS,
            },
        )
        self._raise_for_status(response)
        data = self._json(response)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._malformed(response, e) from e

        usage = data.get("usage") or {}
        return ChatResult(
            content=content if isinstance(content, str) else "",
            tokens_used=int(usage.get("total_tokens") or 0),
        )


class MistralProvider(ChatCompletionsProvider):
    name = "mistral"
    label = "Mistral"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://api.mistral.ai/v1",
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, base_url=base_url, timeout=timeout)


class OpenRouterProvider(ChatCompletionsProvider):
    """OpenRouter requires attribution headers on every request."""

    name = "openrouter"
    label = "OpenRouter"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "https://agentdesk.local",
        title: str = "AgentDesk",
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, base_url=base_url, timeout=timeout)
        self.referer = referer
        self.title = title

    def _headers(self, credentials: ProviderCredentials) -> dict[str, str]:
        headers = super()._headers(credentials)
        headers["HTTP-Referer"] = self.referer
        headers["X-Title"] = self.title
        return headers
