"""Anthropic Messages API adapter."""

from __future__ import annotations

import httpx

from app.enums import MessageRole
from app.models.agent import ChatMessage, ProviderCredentials
from app.services.providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    ChatResult,
    HttpProvider,
)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(HttpProvider):
    name = "anthropic"
    label = "Anthropic"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://api.anthropic.com/v1",
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
        turns = [
            {"role": m.role.value, "content": m.content}
            for m in messages
            if m.role != MessageRole.SYSTEM
        ]
        payload: dict = {
            "model": model,
            "max_tokens": DEFAULT_MAX_OUTPUT_TOKENS,
            "messages": turns,
        }
        if system is not None:
            payload["system"] = system

        response = await self._post(
            f"{self.base_url}/messages",
            headers={
                "x-api-key": credentials.api_key,
                "Content-Type": "application/json",
                "anthropic-version": ANTHROPIC_VERSION,
            },
            payload=payload,
        )
        self._raise_for_status(response)
        data = self._json(response)

        try:
            content = data["content"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise self._malformed(response, e) from e

        usage = data.get("usage") or {}
        tokens = int(usage.get("input_tokens") or 0) + int(usage.get("output_tokens") or 0)
        return ChatResult(content=content, tokens_used=tokens)
