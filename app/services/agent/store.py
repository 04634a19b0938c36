"""SQL-backed ``AgentStore`` built on the DAO layer."""

from __future__ import annotations

import logging
from typing import Any

from app.config import AppConfig
from app.dao import (
    AgentDAO,
    AuditLogDAO,
    CredentialDAO,
    FeedDAO,
    MemoryDAO,
    SecurityFlagDAO,
    SkillDAO,
    TaskDAO,
    ThoughtDAO,
    UserDAO,
)
from app.database import Database
from app.enums import (
    AuditStatus,
    CallerType,
    FlagSeverity,
    FlagType,
    MemoryType,
    MessageRole,
    ModelProvider,
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
    WorkflowStep,
)
from app.models.domain import MemoryEntry
from app.security.credentials import CredentialCodec, codec_for
from app.services.agent.prompt_builder import build_system_prompt

logger = logging.getLogger(__name__)

FALLBACK_CAPABILITIES = ["General assistance", "Answer questions", "Help with tasks"]
MAX_PROMPT_SKILLS = 10
OPENAI_EMBEDDING_BASE_URL = "https://api.openai.com/v1"
OPENROUTER_EMBEDDING_BASE_URL = "https://openrouter.ai/api/v1"


def memory_to_message(memory: MemoryEntry) -> ChatMessage:
    """Replay a stored memory as a chat turn.

    The role comes from ``metadata.role``; summaries replay as system turns
    and anything else as a user turn.
    """
    role = (memory.metadata or {}).get("role")
    if role in (MessageRole.USER.value, MessageRole.ASSISTANT.value):
        resolved = MessageRole(role)
    elif memory.type == MemoryType.CONVERSATION_SUMMARY:
        resolved = MessageRole.SYSTEM
    else:
        resolved = MessageRole.USER

    content = memory.content
    if memory.type == MemoryType.CONVERSATION_SUMMARY:
        content = f"Memory summary: {content}"
    return ChatMessage(role=resolved, content=content)


class SqlAgentStore:
    """``AgentStore`` over the bundled SQLAlchemy schema."""

    def __init__(
        self,
        database: Database,
        config: AppConfig,
        codec: CredentialCodec | None = None,
    ) -> None:
        self.config = config
        self.codec = codec or codec_for(config.credential_codec)
        self.users = UserDAO(database)
        self.agents = AgentDAO(database)
        self.skills = SkillDAO(database)
        self.credentials = CredentialDAO(database)
        self.memory = MemoryDAO(database)
        self.thoughts = ThoughtDAO(database)
        self.security_flags = SecurityFlagDAO(database)
        self.audit_log = AuditLogDAO(database)
        self.tasks = TaskDAO(database)
        self.feed = FeedDAO(database)

    # Configuration

    async def get_agent_config(self, user_id: str, agent_id: str | None) -> AgentConfig | None:
        user = await self.users.get_by_id(user_id)
        if user is None:
            return None

        provider, model = user.llm_provider, user.llm_model
        agent_name = user.name or "Agent"
        custom_instructions = None

        if agent_id:
            agent = await self.agents.get_by_id(agent_id)
            if agent is not None and agent.user_id == user_id:
                agent_name = agent.name
                custom_instructions = agent.custom_instructions
                if agent.llm_provider and agent.llm_model:
                    provider, model = agent.llm_provider, agent.llm_model

        skills = await self.skills.list_active_for_agent(
            user_id, agent_id, limit=MAX_PROMPT_SKILLS
        )
        capabilities = [
            f"{cap.name}: {cap.description}" for skill in skills for cap in skill.capabilities
        ]

        system_prompt = build_system_prompt(
            agent_name,
            user.name or "User",
            capabilities or FALLBACK_CAPABILITIES,
            [],
            custom_instructions,
            timezone=self.config.timezone,
        )
        return AgentConfig(
            provider=provider,
            model=model,
            system_prompt=system_prompt,
            capabilities=capabilities,
        )

    async def get_provider_credentials(
        self, user_id: str, provider: str
    ) -> ProviderCredentials | None:
        credential = await self.credentials.get_active(user_id, provider)
        if credential is None:
            return None
        api_key = self.codec.decode(credential.encrypted_api_key or "")
        if not api_key:
            return None
        return ProviderCredentials(api_key=api_key, base_url=credential.base_url)

    async def get_embedding_credentials(self, user_id: str) -> EmbeddingCredentials | None:
        """Prefer an OpenAI key, fall back to OpenRouter, else None."""
        openai = await self.get_provider_credentials(user_id, ModelProvider.OPENAI.value)
        if openai is not None:
            return EmbeddingCredentials(
                api_key=openai.api_key,
                base_url=openai.base_url or OPENAI_EMBEDDING_BASE_URL,
                model=self.config.embedding_model,
            )

        openrouter = await self.get_provider_credentials(user_id, ModelProvider.OPENROUTER.value)
        if openrouter is not None:
            return EmbeddingCredentials(
                api_key=openrouter.api_key,
                base_url=OPENROUTER_EMBEDDING_BASE_URL,
                model=self.config.openrouter_embedding_model,
            )
        return None

    async def get_agent_by_slug(self, user_id: str, slug: str) -> AgentRef | None:
        agent = await self.agents.get_by_slug(user_id, slug)
        if agent is None:
            return None
        return AgentRef(id=agent.id, name=agent.name, slug=agent.slug)

    async def get_default_agent_id(self, user_id: str) -> str | None:
        agent = await self.agents.get_default(user_id)
        return agent.id if agent is not None else None

    # Memory

    async def load_recent_context(
        self, user_id: str, agent_id: str | None, max_messages: int
    ) -> list[ChatMessage]:
        memories = await self.memory.list_recent(user_id, agent_id, max_messages)
        return [memory_to_message(m) for m in memories]

    async def vector_search_memory(
        self, user_id: str, vector: list[float], limit: int
    ) -> list[str]:
        return await self.memory.vector_search(user_id, vector, limit)

    async def get_memories_by_ids(
        self, user_id: str, agent_id: str | None, memory_ids: list[str]
    ) -> list[ChatMessage]:
        memories = await self.memory.get_by_ids(user_id, agent_id, memory_ids)
        return [memory_to_message(m) for m in memories]

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
    ) -> str:
        entry = await self.memory.save(
            user_id,
            content,
            source,
            agent_id=agent_id,
            type=type,
            embedding=embedding,
            metadata=metadata,
        )
        return entry.id

    async def save_thought(
        self,
        *,
        user_id: str,
        agent_id: str,
        type: ThoughtType,
        content: str,
        context: str | None = None,
    ) -> str:
        thought = await self.thoughts.save(user_id, agent_id, content, type=type, context=context)
        return thought.id

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
    ) -> None:
        await self.security_flags.log(
            user_id, source, flag_type, severity, pattern, input_snippet, action
        )

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
    ) -> None:
        await self.audit_log.log(
            user_id,
            action,
            resource,
            caller_type,
            status,
            caller_identity=caller_identity,
            token_count=token_count,
        )

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
    ) -> str:
        task = await self.tasks.create(
            user_id,
            description,
            agent_id=agent_id,
            is_public=is_public,
            source=source,
            parent_task_id=parent_task_id,
        )
        return task.id

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
    ) -> None:
        await self.tasks.update(
            user_id,
            task_id,
            status=status,
            outcome_summary=outcome_summary,
            outcome_links=outcome_links,
            board_column_id=board_column_id,
            board_column_name=board_column_name,
        )
        logger.info("Task %s updated by agent %s via %s", task_id, agent_id, source)

    async def create_skill(
        self,
        *,
        user_id: str,
        agent_id: str | None,
        name: str,
        bio: str | None,
        capabilities: list[SkillCapability],
    ) -> str:
        skill = await self.skills.create(
            user_id, name, agent_id=agent_id, bio=bio, capabilities=capabilities
        )
        return skill.id

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
    ) -> None:
        await self.skills.update(
            user_id,
            skill_id,
            name=name,
            bio=bio,
            capabilities=capabilities,
            is_active=is_active,
        )

    async def create_feed_item(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        content: str | None,
        metadata: dict[str, Any],
        is_public: bool,
    ) -> str:
        item = await self.feed.create(
            user_id, type, title, content=content, metadata=metadata, is_public=is_public
        )
        return item.id

    async def store_outcome_file(self, *, task_id: str, user_id: str, content: str) -> str:
        task_file = await self.tasks.attach_file(task_id, user_id, content)
        return task_file.id

    async def link_outcome_audio(self, *, task_id: str, user_id: str, storage_id: str) -> None:
        await self.tasks.link_audio(task_id, user_id, storage_id)

    async def set_workflow_steps(self, task_id: str, steps: list[WorkflowStep]) -> None:
        await self.tasks.set_workflow_steps(task_id, steps)
