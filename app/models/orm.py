"""SQLAlchemy ORM models.

These models define the database schema. DAOs convert these to Pydantic
domain models before returning to services - SQLAlchemy objects should
never leak outside the DAO layer.

Embeddings, metadata, capabilities, links and workflow steps are stored as
JSON columns; vector similarity is computed in the DAO.
"""

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from app.database import Base


class UserModel(Base):
    """Agent owner with default LLM settings."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=True)
    llm_provider = Column(String, nullable=False, default="openai")
    llm_model = Column(String, nullable=False, default="gpt-4o-mini")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class AgentModel(Base):
    __tablename__ = "agents"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False)
    is_default = Column(Boolean, nullable=False, default=False)
    llm_provider = Column(String, nullable=True)
    llm_model = Column(String, nullable=True)
    custom_instructions = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (UniqueConstraint("user_id", "slug", name="uq_agents_user_slug"),)


class SkillModel(Base):
    """Skill profile. ``agent_id`` NULL means shared by all of the user's agents."""

    __tablename__ = "skills"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    agent_id = Column(String, ForeignKey("agents.id"), nullable=True)
    name = Column(String, nullable=False)
    bio = Column(Text, nullable=False, default="")
    capabilities = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class ProviderCredentialModel(Base):
    """BYOK credential; ``encrypted_api_key`` is decoded by a CredentialCodec."""

    __tablename__ = "provider_credentials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    service = Column(String, nullable=False)
    encrypted_api_key = Column(Text, nullable=True)
    base_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("user_id", "service", name="uq_provider_credentials_user_service"),
    )


class AgentMemoryModel(Base):
    __tablename__ = "agent_memory"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    agent_id = Column(String, nullable=True)
    type = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    source = Column(String, nullable=False)
    embedding = Column(JSON, nullable=True)
    # "metadata" is reserved on declarative classes.
    meta = Column("metadata", JSON, nullable=True)
    archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_agent_memory_user_created", "user_id", "created_at"),)


class AgentThoughtModel(Base):
    __tablename__ = "agent_thoughts"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    agent_id = Column(String, nullable=False)
    type = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    related_task_id = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class SecurityFlagModel(Base):
    __tablename__ = "security_flags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    source = Column(String, nullable=False)
    flag_type = Column(String, nullable=False)
    severity = Column(String, nullable=False)
    pattern = Column(String, nullable=False)
    input_snippet = Column(Text, nullable=False)
    action = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)


class AuditLogModel(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    action = Column(String, nullable=False)
    resource = Column(String, nullable=False)
    caller_type = Column(String, nullable=False)
    caller_identity = Column(String, nullable=True)
    token_count = Column(Integer, nullable=True)
    status = Column(String, nullable=False)
    details = Column(JSON, nullable=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (Index("ix_audit_log_user_timestamp", "user_id", "timestamp"),)


class BoardColumnModel(Base):
    __tablename__ = "board_columns"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)


class TaskModel(Base):
    __tablename__ = "tasks"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    agent_id = Column(String, nullable=True)
    parent_task_id = Column(String, ForeignKey("tasks.id"), nullable=True)
    description = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="pending")
    board_column_id = Column(String, ForeignKey("board_columns.id"), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    source = Column(String, nullable=True)
    outcome_summary = Column(Text, nullable=True)
    outcome_links = Column(JSON, nullable=True)
    outcome_file_id = Column(String, nullable=True)
    outcome_audio_id = Column(String, nullable=True)
    workflow_steps = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class FeedItemModel(Base):
    __tablename__ = "feed_items"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class TaskFileModel(Base):
    __tablename__ = "task_files"

    id = Column(String, primary_key=True)
    task_id = Column(String, ForeignKey("tasks.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
