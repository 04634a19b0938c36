"""Google Gemini generateContent adapter."""

from __future__ import annotations

import httpx

from app.enums import MessageRole
from app.models.agent import ChatMessage, ProviderCredentials
from app.services.providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    ChatResult,
    HttpProvider,
)


def to_gemini_contents(messages: list[ChatMessage]) -> list[dict]:
    """Gemini calls the assistant role ``model``; system turns are dropped."""
    return [
        {
            "role": "model" if m.role == MessageRole.ASSISTANT else "user",
            "parts": [{"text": m.content}],
        }
        for m in messages
        if m.role != MessageRole.SYSTEM
    ]


class GeminiProvider(HttpProvider):
    name = "google"
    label = "Gemini"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    async def call(
        self,
        credentials: ProviderCredentials,
        model: str,
        messages: list[ChatMessage],
    ) -> ChatResult:
        system = next((m.content for m in messages if m.role == MessageRole.SYSTEM), None)
        payload: dict = {
            "contents": to_gemini_contents(messages),
            "generationConfig": {"maxOutputTokens": DEFAULT_MAX_OUTPUT_TOKENS},
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}

        # The key travels as a query parameter; redaction scrubs ``key=`` in logs.
        response = await self._post(
            f"{self.base_url}/models/{model}:generateContent",
            headers={"Content-Type": "application/json"},
            payload=payload,
            params={"key": credentials.api_key},
        )
        self._raise_for_status(response)
        data = self._json(response)

        try:
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._malformed(response, e) from e

        usage = data.get("usageMetadata") or {}
        tokens = int(usage.get("promptTokenCount") or 0) + int(
            usage.get("candidatesTokenCount") or 0
        )
        return ChatResult(content=content, tokens_used=tokens)
