"""Tests for the Anthropic, Gemini, Mistral and OpenRouter adapters."""

import httpx
import pytest

from app.models.agent import ProviderCredentials
from app.services.providers.anthropic import ANTHROPIC_VERSION, AnthropicProvider
from app.services.providers.base import DEFAULT_MAX_OUTPUT_TOKENS, ProviderError
from app.services.providers.chat_completions import MistralProvider, OpenRouterProvider
from app.services.providers.gemini import GeminiProvider, to_gemini_contents

CREDS = ProviderCredentials(api_key="test-key")


class TestAnthropicProvider:
    async def test_system_prompt_is_lifted(self, mock_client, messages):
        client, recorder = mock_client(
            lambda request: httpx.Response(
                200,
                json={
                    "content": [{"type": "text", "text": "4"}],
                    "usage": {"input_tokens": 30, "output_tokens": 2},
                },
            )
        )

        result = await AnthropicProvider(client).call(CREDS, "claude-3-5-haiku", messages)

        assert result.content == "4"
        assert result.tokens_used == 32
        request = recorder.requests[0]
        assert str(request.url) == "https://api.anthropic.com/v1/messages"
        assert request.headers["x-api-key"] == "test-key"
        assert request.headers["anthropic-version"] == ANTHROPIC_VERSION
        body = recorder.bodies()[0]
        assert body["system"] == "You are Nova."
        assert body["max_tokens"] == DEFAULT_MAX_OUTPUT_TOKENS
        assert [m["role"] for m in body["messages"]] == ["user", "assistant", "user"]

    async def test_error_status_raises(self, mock_client, messages):
        client, _ = mock_client(
            lambda request: httpx.Response(401, json={"error": {"type": "authentication_error"}})
        )
        with pytest.raises(ProviderError) as exc_info:
            await AnthropicProvider(client).call(CREDS, "claude", messages)
        assert exc_info.value.status_code == 401
        assert "authentication_error" in str(exc_info.value)

    async def test_missing_content_is_malformed(self, mock_client, messages):
        client, _ = mock_client(lambda request: httpx.Response(200, json={"content": []}))
        with pytest.raises(ProviderError, match="malformed response"):
            await AnthropicProvider(client).call(CREDS, "claude", messages)


class TestGeminiProvider:
    def test_roles_are_mapped(self, messages):
        contents = to_gemini_contents(messages)
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert contents[0]["parts"] == [{"text": "Hi"}]

    async def test_call(self, mock_client, messages):
        client, recorder = mock_client(
            lambda request: httpx.Response(
                200,
                json={
                    "candidates": [{"content": {"parts": [{"text": "4"}]}}],
                    "usageMetadata": {"promptTokenCount": 10, "candidatesTokenCount": 1},
                },
            )
        )

        result = await GeminiProvider(client).call(CREDS, "gemini-1.5-flash", messages)

        assert result.content == "4"
        assert result.tokens_used == 11
        request = recorder.requests[0]
        assert request.url.path.endswith("/models/gemini-1.5-flash:generateContent")
        assert request.url.params["key"] == "test-key"
        body = recorder.bodies()[0]
        assert body["systemInstruction"] == {"parts": [{"text": "You are Nova."}]}
        assert body["generationConfig"]["maxOutputTokens"] == DEFAULT_MAX_OUTPUT_TOKENS

    async def test_no_candidates_is_malformed(self, mock_client, messages):
        client, _ = mock_client(lambda request: httpx.Response(200, json={"candidates": []}))
        with pytest.raises(ProviderError):
            await GeminiProvider(client).call(CREDS, "gemini", messages)


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}], "usage": {"total_tokens": 7}}


class TestChatCompletionsProviders:
    async def test_mistral(self, mock_client, messages):
        client, recorder = mock_client(lambda request: httpx.Response(200, json=_completion("ok")))

        result = await MistralProvider(client).call(CREDS, "mistral-small", messages)

        assert result.content == "ok"
        assert result.tokens_used == 7
        assert str(recorder.requests[0].url) == "https://api.mistral.ai/v1/chat/completions"
        assert recorder.bodies()[0]["max_tokens"] == DEFAULT_MAX_OUTPUT_TOKENS

    async def test_openrouter_attribution_headers(self, mock_client, messages):
        client, recorder = mock_client(lambda request: httpx.Response(200, json=_completion("ok")))
        provider = OpenRouterProvider(client, referer="https://app.test", title="Test App")

        await provider.call(CREDS, "openai/gpt-4o-mini", messages)

        request = recorder.requests[0]
        assert str(request.url) == "https://openrouter.ai/api/v1/chat/completions"
        assert request.headers["HTTP-Referer"] == "https://app.test"
        assert request.headers["X-Title"] == "Test App"
        assert request.headers["Authorization"] == "Bearer test-key"

    async def test_transport_error_becomes_provider_error(self, mock_client, messages):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = mock_client(handler)
        with pytest.raises(ProviderError) as exc_info:
            await MistralProvider(client).call(CREDS, "mistral-small", messages)
        assert exc_info.value.provider == "mistral"
        assert exc_info.value.status_code is None
