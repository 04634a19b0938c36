"""Collaborator interfaces consumed by the message pipeline.

The pipeline never talks to a database, blob store or TTS engine directly;
it goes through these protocols. ``app.services.agent.store.SqlAgentStore``
is the bundled SQL-backed implementation.
"""

from __future__ import annotations

from typing import Any, Protocol

from app.enums import (
    AuditStatus,
    CallerType,
    FlagSeverity,
    FlagType,
    MemoryType,
    TaskStatus,
    ThoughtType,
)
from app.models.actions import SkillCapability
from app.models.agent import (
    AgentConfig,
    AgentRef,
    ChatMessage,
    EmbeddingCredentials,
    ProviderCredentials,
    SpeechResult,
    WorkflowStep,
)


class AgentStore(Protocol):
    # Configuration

    async def get_agent_config(self, user_id: str, agent_id: str | None) -> AgentConfig | None: ...

    async def get_provider_credentials(
        self, user_id: str, provider: str
    ) -> ProviderCredentials | None: ...

    async def get_embedding_credentials(self, user_id: str) -> EmbeddingCredentials | None: ...

    async def get_agent_by_slug(self, user_id: str, slug: str) -> AgentRef | None: ...

    async def get_default_agent_id(self, user_id: str) -> str | None: ...

    # Memory

    async def load_recent_context(
        self, user_id: str, agent_id: str | None, max_messages: int
    ) -> list[ChatMessage]: ...

    async def vector_search_memory(
        self, user_id: str, vector: list[float], limit: int
    ) -> list[str]: ...

    async def get_memories_by_ids(
        self, user_id: str, agent_id: str | None, memory_ids: list[str]
    ) -> list[ChatMessage]: ...

    async def save_memory(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        type: MemoryType,
        content: str,
        source: str,
        embedding: list[float] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str: ...

    async def save_thought(
        self,
        *,
        user_id: str,
        agent_id: str,
        type: ThoughtType,
        content: str,
        context: str | None = None,
    ) -> str: ...

    # Audit

    async def log_security_flag(
        self,
        *,
        user_id: str,
        source: str,
        flag_type: FlagType,
        severity: FlagSeverity,
        pattern: str,
        input_snippet: str,
        action: str,
    ) -> None: ...

    async def log_agent_action(
        self,
        *,
        user_id: str,
        action: str,
        resource: str,
        caller_type: CallerType,
        caller_identity: str,
        token_count: int,
        status: AuditStatus,
    ) -> None: ...

    # Board / skills / feed

    async def create_task(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        description: str,
        is_public: bool,
        source: str,
        parent_task_id: str | None = None,
    ) -> str: ...

    async def update_task(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        task_id: str,
        source: str,
        status: TaskStatus | None = None,
        outcome_summary: str | None = None,
        outcome_links: list[str] | None = None,
        board_column_id: str | None = None,
        board_column_name: str | None = None,
    ) -> None: ...

    async def create_skill(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        name: str,
        bio: str | None,
        capabilities: list[SkillCapability],
    ) -> str: ...

    async def update_skill(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        skill_id: str,
        name: str | None = None,
        bio: str | None = None,
        capabilities: list[SkillCapability] | None = None,
        is_active: bool | None = None,
    ) -> None: ...

    async def create_feed_item(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        content: str | None,
        metadata: dict[str, Any],
        is_public: bool,
    ) -> str: ...

    async def store_outcome_file(self, *, task_id: str, user_id: str, content: str) -> str: ...

    async def link_outcome_audio(self, *, task_id: str, user_id: str, storage_id: str) -> None: ...

    async def set_workflow_steps(self, task_id: str, steps: list[WorkflowStep]) -> None: ...


class SpeechSynthesizer(Protocol):
    async def synthesize(
        self, user_id: str, agent_id: str, text: str
    ) -> SpeechResult | None: ...


class NullSpeechSynthesizer:
    """Default synthesizer: no TTS backend configured, nothing is produced."""

    async def synthesize(self, user_id: str, agent_id: str, text: str) -> SpeechResult | None:
        return None
