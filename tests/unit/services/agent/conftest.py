"""In-memory collaborators for dispatcher and pipeline tests."""

from typing import Any

import pytest

from app.models.agent import (
    AgentConfig,
    AgentRef,
    ChatMessage,
    EmbeddingCredentials,
    ProviderCredentials,
    SpeechResult,
)
from app.services.providers.base import ChatResult
from app.services.providers.registry import ProviderRegistry


class FakeAgentStore:
    """Records every call; methods named in ``fail`` raise RuntimeError."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.fail: set[str] = set()
        self.config: AgentConfig | None = AgentConfig(
            provider="openai",
            model="gpt-4o-mini",
            system_prompt="You are Sam, a personal AI assistant for Sam.",
        )
        self.credentials: dict[str, ProviderCredentials] = {
            "openai": ProviderCredentials(api_key="sk-test"),
        }
        self.embedding_credentials: EmbeddingCredentials | None = None
        self.agents: dict[str, AgentRef] = {}
        self.default_agent_id: str | None = None
        self.recent: list[ChatMessage] = []
        self.related: list[ChatMessage] = []
        self.search_hits: list[str] = []
        self._ids = 0

    def _record(self, name: str, /, **kwargs: Any) -> None:
        self.calls.append((name, kwargs))
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")

    def _next_id(self, prefix: str) -> str:
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def called(self, name: str) -> list[dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def get_agent_config(self, user_id, agent_id):
        self._record("get_agent_config", user_id=user_id, agent_id=agent_id)
        return self.config

    async def get_provider_credentials(self, user_id, provider):
        self._record("get_provider_credentials", user_id=user_id, provider=provider)
        return self.credentials.get(provider)

    async def get_embedding_credentials(self, user_id):
        self._record("get_embedding_credentials", user_id=user_id)
        return self.embedding_credentials

    async def get_agent_by_slug(self, user_id, slug):
        self._record("get_agent_by_slug", user_id=user_id, slug=slug)
        return self.agents.get(slug)

    async def get_default_agent_id(self, user_id):
        self._record("get_default_agent_id", user_id=user_id)
        return self.default_agent_id

    async def load_recent_context(self, user_id, agent_id, max_messages):
        self._record("load_recent_context", user_id=user_id, agent_id=agent_id, max_messages=max_messages)
        return list(self.recent)

    async def vector_search_memory(self, user_id, vector, limit):
        self._record("vector_search_memory", user_id=user_id, vector=vector, limit=limit)
        return list(self.search_hits)

    async def get_memories_by_ids(self, user_id, agent_id, memory_ids):
        self._record("get_memories_by_ids", user_id=user_id, agent_id=agent_id, memory_ids=memory_ids)
        return list(self.related)

    async def save_memory(self, **kwargs):
        self._record("save_memory", **kwargs)
        return self._next_id("memory")

    async def save_thought(self, **kwargs):
        self._record("save_thought", **kwargs)
        return self._next_id("thought")

    async def log_security_flag(self, **kwargs):
        self._record("log_security_flag", **kwargs)

    async def log_agent_action(self, **kwargs):
        self._record("log_agent_action", **kwargs)

    async def create_task(self, **kwargs):
        self._record("create_task", **kwargs)
        return self._next_id("task")

    async def update_task(self, **kwargs):
        self._record("update_task", **kwargs)

    async def create_skill(self, **kwargs):
        self._record("create_skill", **kwargs)
        return self._next_id("skill")

    async def update_skill(self, **kwargs):
        self._record("update_skill", **kwargs)

    async def create_feed_item(self, **kwargs):
        self._record("create_feed_item", **kwargs)
        return self._next_id("feed")

    async def store_outcome_file(self, **kwargs):
        self._record("store_outcome_file", **kwargs)
        return self._next_id("file")

    async def link_outcome_audio(self, **kwargs):
        self._record("link_outcome_audio", **kwargs)

    async def set_workflow_steps(self, task_id, steps):
        self._record("set_workflow_steps", task_id=task_id, steps=steps)


class ScriptedProvider:
    """Chat adapter returning queued replies; an exception in the queue is raised."""

    name = "scripted"

    def __init__(self, *replies: str | Exception, tokens_used: int = 12) -> None:
        self.replies = list(replies)
        self.tokens_used = tokens_used
        self.requests: list[tuple[ProviderCredentials, str, list[ChatMessage]]] = []

    async def call(self, credentials, model, messages):
        self.requests.append((credentials, model, list(messages)))
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return ChatResult(content=reply, tokens_used=self.tokens_used)


class FakeEmbeddings:
    def __init__(self, vector: list[float] | None = None, error: Exception | None = None) -> None:
        self.vector = vector or [1.0, 0.0]
        self.error = error
        self.texts: list[str] = []

    async def embed(self, api_key, model, text, base_url=None):
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return list(self.vector)


class RecordingSpeech:
    def __init__(self, result: SpeechResult | None = None) -> None:
        self.result = result
        self.requests: list[tuple[str, str, str]] = []

    async def synthesize(self, user_id, agent_id, text):
        self.requests.append((user_id, agent_id, text))
        return self.result


@pytest.fixture
def fake_store() -> FakeAgentStore:
    return FakeAgentStore()


@pytest.fixture
def registry_for():
    """Build a ProviderRegistry whose every vendor is the given adapter."""

    def build(provider: ScriptedProvider, embeddings: FakeEmbeddings | None = None) -> ProviderRegistry:
        return ProviderRegistry({"openai": provider}, fallback=provider, embeddings=embeddings)

    return build


@pytest.fixture
def scripted_provider():
    return ScriptedProvider


@pytest.fixture
def fake_embeddings():
    return FakeEmbeddings


@pytest.fixture
def recording_speech():
    return RecordingSpeech
