"""Pydantic domain models.

These models are returned by DAOs and used throughout the service layer.
SQLAlchemy ORM objects should never be exposed outside the DAO layer -
always convert to these models.
"""

from datetime import datetime
from typing import Any

from app.enums import (
    AuditStatus,
    CallerType,
    FlagSeverity,
    FlagType,
    MemoryType,
    ThoughtType,
)
from app.models.actions import SkillCapability
from app.models.agent import WorkflowStep
from app.models.base import JsonModel


class User(JsonModel):
    """Platform user (agent owner)."""

    id: str
    name: str | None = None
    llm_provider: str
    llm_model: str
    created_at: datetime


class Agent(JsonModel):
    """An agent owned by a user.

    ``llm_provider``/``llm_model`` override the owner's defaults when set.
    """

    id: str
    user_id: str
    name: str
    slug: str
    is_default: bool = False
    llm_provider: str | None = None
    llm_model: str | None = None
    custom_instructions: str | None = None
    created_at: datetime


class Skill(JsonModel):
    """Skill profile entry, optionally bound to one agent."""

    id: str
    user_id: str
    agent_id: str | None = None
    name: str
    bio: str = ""
    capabilities: list[SkillCapability] = []
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ProviderCredential(JsonModel):
    """Stored (still encoded) BYOK credential."""

    id: int | None = None
    user_id: str
    service: str
    encrypted_api_key: str | None = None
    base_url: str | None = None
    is_active: bool = True


class MemoryEntry(JsonModel):
    """One persisted agent memory."""

    id: str
    user_id: str
    agent_id: str | None = None
    type: MemoryType
    content: str
    source: str
    embedding: list[float] | None = None
    metadata: dict[str, Any] | None = None
    archived: bool = False
    created_at: datetime


class AgentThought(JsonModel):
    """Internal reasoning captured from a thinking block."""

    id: str
    user_id: str
    agent_id: str
    type: ThoughtType
    content: str
    context: str | None = None
    related_task_id: str | None = None
    created_at: datetime


class SecurityFlagRecord(JsonModel):
    """Persisted security flag."""

    id: int | None = None
    user_id: str
    source: str
    flag_type: FlagType
    severity: FlagSeverity
    pattern: str
    input_snippet: str
    action: str
    timestamp: datetime


class AuditLogEntry(JsonModel):
    """Audit trail entry for an agent action."""

    id: int | None = None
    user_id: str
    action: str
    resource: str
    caller_type: CallerType
    caller_identity: str | None = None
    token_count: int | None = None
    status: AuditStatus
    details: dict[str, Any] | None = None
    timestamp: datetime


class BoardColumn(JsonModel):
    """Column on a user's task board."""

    id: str
    user_id: str
    name: str
    position: int = 0


class Task(JsonModel):
    """Board task."""

    id: str
    user_id: str
    agent_id: str | None = None
    parent_task_id: str | None = None
    description: str
    status: str
    board_column_id: str | None = None
    is_public: bool = False
    source: str | None = None
    outcome_summary: str | None = None
    outcome_links: list[str] | None = None
    outcome_file_id: str | None = None
    outcome_audio_id: str | None = None
    workflow_steps: list[WorkflowStep] | None = None
    created_at: datetime
    updated_at: datetime


class FeedItem(JsonModel):
    """Social feed entry."""

    id: str
    user_id: str
    type: str
    title: str
    content: str | None = None
    metadata: dict[str, Any] | None = None
    is_public: bool = False
    created_at: datetime


class TaskFile(JsonModel):
    """Long-form outcome stored alongside a task."""

    id: str
    task_id: str
    user_id: str
    content: str
    created_at: datetime
