"""Provider registry: provider id -> chat adapter.

Unknown provider names resolve to the generic OpenAI-compatible adapter, so
adding a vendor is a pure ``register()`` call.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from app.config import AppConfig
from app.enums import ModelProvider
from app.models.agent import ChatMessage, ProviderCredentials
from app.services.providers.anthropic import AnthropicProvider
from app.services.providers.base import ChatProvider, ChatResult
from app.services.providers.chat_completions import MistralProvider, OpenRouterProvider
from app.services.providers.embeddings import EmbeddingClient
from app.services.providers.gemini import GeminiProvider
from app.services.providers.openai_compatible import OpenAICompatibleProvider

logger = logging.getLogger(__name__)


class ProviderRegistry:
    def __init__(
        self,
        providers: Mapping[str, ChatProvider],
        fallback: ChatProvider,
        *,
        embeddings: EmbeddingClient | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._providers: dict[str, ChatProvider] = dict(providers)
        self._fallback = fallback
        self.embeddings = embeddings
        self._client = client

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        client: httpx.AsyncClient | None = None,
    ) -> "ProviderRegistry":
        """Build the default adapter set sharing one ``httpx.AsyncClient``.

        When no client is given one is created with the configured request
        timeout and closed by ``aclose()``.
        """
        owned = client is None
        if client is None:
            client = httpx.AsyncClient(timeout=config.request_timeout_seconds)

        def compatible(provider: ModelProvider) -> OpenAICompatibleProvider:
            return OpenAICompatibleProvider(
                client,
                name=provider.value,
                default_base_url=config.base_url_for(provider.value) or "",
            )

        openai = compatible(ModelProvider.OPENAI)
        providers: dict[str, ChatProvider] = {
            ModelProvider.OPENAI.value: openai,
            ModelProvider.DEEPSEEK.value: compatible(ModelProvider.DEEPSEEK),
            ModelProvider.MINIMAX.value: compatible(ModelProvider.MINIMAX),
            ModelProvider.KIMI.value: compatible(ModelProvider.KIMI),
            ModelProvider.ANTHROPIC.value: AnthropicProvider(
                client, base_url=config.base_url_for("anthropic") or ""
            ),
            ModelProvider.GOOGLE.value: GeminiProvider(
                client, base_url=config.base_url_for("google") or ""
            ),
            ModelProvider.MISTRAL.value: MistralProvider(
                client, base_url=config.base_url_for("mistral") or ""
            ),
            ModelProvider.OPENROUTER.value: OpenRouterProvider(
                client,
                base_url=config.base_url_for("openrouter") or "",
                referer=config.openrouter_referer,
                title=config.openrouter_title,
            ),
        }
        embeddings = EmbeddingClient(client, timeout=config.embedding_timeout_seconds)
        return cls(
            providers,
            fallback=openai,
            embeddings=embeddings,
            client=client if owned else None,
        )

    def register(self, name: str, provider: ChatProvider) -> None:
        self._providers[name] = provider

    def get(self, name: str) -> ChatProvider:
        provider = self._providers.get(name)
        if provider is None:
            logger.info("Unknown provider '%s', using OpenAI-compatible fallback", name)
            return self._fallback
        return provider

    def names(self) -> list[str]:
        return sorted(self._providers)

    async def call(
        self,
        provider: str,
        credentials: ProviderCredentials,
        model: str,
        messages: list[ChatMessage],
    ) -> ChatResult:
        return await self.get(provider).call(credentials, model, messages)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
