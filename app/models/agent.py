"""Agent runtime models.

Value objects that flow through one message-processing run: chat messages,
scan verdicts, the resolved agent configuration, credentials, workflow steps
and the final result handed back to channel adapters.
"""

from pydantic import Field

from app.enums import (
    FlagSeverity,
    FlagType,
    MessageRole,
    ScanSeverity,
    WorkflowStepStatus,
)
from app.models.base import JsonModel


class ChatMessage(JsonModel):
    """A single chat turn sent to a provider."""

    role: MessageRole
    content: str


class SecurityFlag(JsonModel):
    """One pattern match produced by the input scanner."""

    type: FlagType
    pattern: str
    match: str
    severity: FlagSeverity


class SecurityScanResult(JsonModel):
    """Verdict of scanning raw user text.

    ``sanitized_input`` is always populated, even for safe input.
    """

    safe: bool
    severity: ScanSeverity
    flags: list[SecurityFlag] = Field(default_factory=list)
    sanitized_input: str

    @property
    def flag_types(self) -> list[str]:
        return [flag.type.value for flag in self.flags]


class AgentConfig(JsonModel):
    """Per-request projection of user defaults overridden by agent settings."""

    provider: str
    model: str
    system_prompt: str
    capabilities: list[str] = Field(default_factory=list)


class ProviderCredentials(JsonModel):
    """Decoded BYOK credentials for one (user, provider) pair."""

    api_key: str
    base_url: str | None = None


class EmbeddingCredentials(JsonModel):
    """Credentials and model used to embed memory text."""

    api_key: str
    base_url: str
    model: str


class AgentRef(JsonModel):
    """Minimal agent identity returned by slug lookups."""

    id: str
    name: str
    slug: str


class SpeechResult(JsonModel):
    """Stored audio produced by a speech synthesizer."""

    storage_id: str
    audio_url: str | None = None
    provider: str | None = None


class WorkflowStep(JsonModel):
    """One recorded pipeline stage (times are epoch milliseconds)."""

    label: str
    status: WorkflowStepStatus
    started_at: int
    completed_at: int | None = None
    duration_ms: int | None = None
    detail: str | None = None


class ProcessMessageResult(JsonModel):
    """Externally visible outcome of one pipeline run."""

    response: str
    tokens_used: int = 0
    blocked: bool = False
    security_flags: list[str] = Field(default_factory=list)
