"""StrEnum definitions for type-safe constants."""

from enum import StrEnum


class ModelProvider(StrEnum):
    """Supported LLM providers (BYOK)."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    MISTRAL = "mistral"
    OPENROUTER = "openrouter"
    DEEPSEEK = "deepseek"
    MINIMAX = "minimax"
    KIMI = "kimi"


class Channel(StrEnum):
    """Inbound channels that can reach an agent."""

    EMAIL = "email"
    PHONE = "phone"
    API = "api"
    MCP = "mcp"
    WEBMCP = "webmcp"
    A2A = "a2a"
    DASHBOARD = "dashboard"


class MessageRole(StrEnum):
    """Chat message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ScanSeverity(StrEnum):
    """Overall verdict of an input security scan."""

    SAFE = "safe"
    WARN = "warn"
    BLOCK = "block"


class FlagSeverity(StrEnum):
    """Severity of a single security flag."""

    WARN = "warn"
    BLOCK = "block"


class FlagType(StrEnum):
    """Pattern family that produced a security flag."""

    INJECTION = "injection"
    SENSITIVE = "sensitive"
    EXFILTRATION = "exfiltration"


class TaskStatus(StrEnum):
    """Board task status values an agent may set."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowStepStatus(StrEnum):
    """Status of one pipeline stage in a workflow trail."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ActionType(StrEnum):
    """App actions the model may request in an action block."""

    CREATE_TASK = "create_task"
    CREATE_FEED_ITEM = "create_feed_item"
    CREATE_SKILL = "create_skill"
    UPDATE_TASK_STATUS = "update_task_status"
    MOVE_TASK = "move_task"
    UPDATE_SKILL = "update_skill"
    CREATE_SUBTASK = "create_subtask"
    DELEGATE_TO_AGENT = "delegate_to_agent"
    GENERATE_IMAGE = "generate_image"
    GENERATE_AUDIO = "generate_audio"
    CALL_TOOL = "call_tool"


class MemoryType(StrEnum):
    """Kinds of agent memory entries."""

    CONVERSATION = "conversation"
    LEARNED_PREFERENCE = "learned_preference"
    TASK_RESULT = "task_result"
    CONVERSATION_SUMMARY = "conversation_summary"


class ThoughtType(StrEnum):
    """Kinds of persisted agent thoughts."""

    OBSERVATION = "observation"
    REASONING = "reasoning"
    DECISION = "decision"
    REFLECTION = "reflection"
    GOAL_UPDATE = "goal_update"


class CallerType(StrEnum):
    """Who triggered an audited agent action."""

    USER = "user"
    AGENT = "agent"
    A2A = "a2a"
    CRON = "cron"
    WEBHOOK = "webhook"


class AuditStatus(StrEnum):
    """Outcome recorded in the audit log."""

    SUCCESS = "success"
    ERROR = "error"
    BLOCKED = "blocked"
    IN_PROGRESS = "in_progress"


class CredentialCodecKind(StrEnum):
    """How stored provider API keys are decoded."""

    PLAIN = "plain"
    BASE64 = "base64"
