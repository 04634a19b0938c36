"""LLM provider adapters (BYOK)."""

from app.services.providers.anthropic import AnthropicProvider
from app.services.providers.base import (
    ChatProvider,
    ChatResult,
    EmbeddingError,
    ProviderError,
)
from app.services.providers.chat_completions import MistralProvider, OpenRouterProvider
from app.services.providers.embeddings import EmbeddingClient
from app.services.providers.gemini import GeminiProvider
from app.services.providers.openai_compatible import OpenAICompatibleProvider
from app.services.providers.registry import ProviderRegistry

__all__ = [
    "AnthropicProvider",
    "ChatProvider",
    "ChatResult",
    "EmbeddingClient",
    "EmbeddingError",
    "GeminiProvider",
    "MistralProvider",
    "OpenAICompatibleProvider",
    "OpenRouterProvider",
    "ProviderError",
    "ProviderRegistry",
]
