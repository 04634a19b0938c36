"""Generic OpenAI chat-completions adapter.

Reused for OpenAI, DeepSeek, MiniMax and Kimi (Moonshot) with different
default base URLs, and as the fallback for unknown provider names.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from app.models.agent import ChatMessage, ProviderCredentials
from app.services.providers.base import (
    DEFAULT_MAX_OUTPUT_TOKENS,
    ChatResult,
    HttpProvider,
    to_wire_messages,
)

logger = logging.getLogger(__name__)

REASONING_MAX_OUTPUT_TOKENS = 16384

REFUSAL_TEMPLATE = "I was unable to process that request: {refusal}"
EMPTY_CONTENT_MESSAGE = "I was unable to generate a response for this request."

_REASONING_PREFIXES = ("o1", "o3", "o4", "gpt-5")
_REASONING_INFIXES = ("o1-", "o3-", "o4-")


def is_reasoning_model(model: str) -> bool:
    """Return True for o-series / gpt-5 family models (case-insensitive)."""
    lower = model.lower()
    return lower.startswith(_REASONING_PREFIXES) or any(i in lower for i in _REASONING_INFIXES)


def build_request_variants(
    model: str, messages: list[dict[str, str]]
) -> list[dict[str, Any]]:
    """Request bodies to try in order; the first 2xx wins.

    Some provider/model combinations reject a given token-limit parameter, so
    each variant drops one more optional field.
    """
    base = {"model": model, "messages": messages}
    if is_reasoning_model(model):
        budget = REASONING_MAX_OUTPUT_TOKENS
        return [
            {**base, "max_completion_tokens": budget, "reasoning_effort": "low"},
            {**base, "max_completion_tokens": budget},
            dict(base),
        ]
    budget = DEFAULT_MAX_OUTPUT_TOKENS
    return [
        {**base, "max_completion_tokens": budget},
        {**base, "max_tokens": budget},
        dict(base),
    ]


def extract_message_content(raw: Any) -> str:
    """Flatten message content that may be a string or a list of parts."""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, list):
        parts: list[str] = []
        for part in raw:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and isinstance(part.get("text"), str):
                parts.append(part["text"])
        return "".join(parts)
    return ""


def _first_choice(data: dict[str, Any]) -> dict[str, Any]:
    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        return choices[0]
    return {}


def _usage_total(data: dict[str, Any]) -> int:
    usage = data.get("usage")
    if isinstance(usage, dict):
        total = usage.get("total_tokens")
        if isinstance(total, int):
            return total
    return 0


class OpenAICompatibleProvider(HttpProvider):
    """Chat-completions adapter with request-variant fallback."""

    label = "OpenAI"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        name: str = "openai",
        default_base_url: str = "https://api.openai.com/v1",
        timeout: float | None = None,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self.name = name
        self.default_base_url = default_base_url

    async def call(
        self,
        credentials: ProviderCredentials,
        model: str,
        messages: list[ChatMessage],
    ) -> ChatResult:
        base_url = (credentials.base_url or self.default_base_url).rstrip("/")
        endpoint = f"{base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {credentials.api_key}",
            "Content-Type": "application/json",
        }

        first, *fallbacks = build_request_variants(model, to_wire_messages(messages))
        response = await self._post(endpoint, headers=headers, payload=first)
        for variant in fallbacks:
            if response.is_success:
                break
            logger.debug(
                "%s rejected request variant (%s) for model %s",
                self.name,
                response.status_code,
                model,
            )
            response = await self._post(endpoint, headers=headers, payload=variant)

        self._raise_for_status(response)
        data = self._json(response)

        tokens_used = _usage_total(data)
        message = _first_choice(data).get("message")
        if not isinstance(message, dict):
            message = {}

        refusal = message.get("refusal")
        if isinstance(refusal, str) and refusal.strip():
            logger.warning("%s: model %s refused with: %s", self.name, model, refusal)
            return ChatResult(
                content=REFUSAL_TEMPLATE.format(refusal=refusal),
                tokens_used=tokens_used,
            )

        content = extract_message_content(message.get("content"))
        if not content.strip():
            usage = data.get("usage") if isinstance(data.get("usage"), dict) else {}
            details = usage.get("completion_tokens_details") or {}
            logger.warning(
                "%s: empty content for model %s. completion_tokens=%s, "
                "reasoning_tokens=%s, finish_reason=%s. Increase "
                "max_completion_tokens or lower reasoning_effort if this persists.",
                self.name,
                model,
                usage.get("completion_tokens", "n/a"),
                details.get("reasoning_tokens", "n/a") if isinstance(details, dict) else "n/a",
                _first_choice(data).get("finish_reason", "unknown"),
            )
            return ChatResult(content=EMPTY_CONTENT_MESSAGE, tokens_used=tokens_used)

        return ChatResult(content=content, tokens_used=tokens_used)
