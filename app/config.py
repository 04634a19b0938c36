"""Configuration with JSON file, secrets.yml, and env variable support."""

import json
from pathlib import Path

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.enums import CredentialCodecKind


def _find_repo_root(*, start: Path) -> Path:
    """Best-effort repository root discovery.

    Relative config paths are resolved against the repo root so the app can be
    launched from any working directory. The root is the first directory
    containing ``pyproject.toml``; otherwise the current working directory.
    """

    try:
        start = start.resolve()
        for p in [start, *start.parents]:
            if (p / "pyproject.toml").exists():
                return p
    except OSError:
        pass

    return Path.cwd()


def _flatten_secrets_mapping(secrets: dict) -> dict:
    """Flatten secrets mapping into AppConfig-compatible keys.

    Converts nested YAML structure to flat config keys:
        openrouter.referer -> openrouter_referer
        database.url -> database_url
    """
    flat = {}
    for section, values in secrets.items():
        if isinstance(values, dict):
            for key, value in values.items():
                flat[f"{section}_{key}"] = value
        else:
            flat[section] = values
    return flat


def _load_secrets(secrets_path: Path) -> dict:
    """Load and flatten secrets from YAML file."""
    if not secrets_path.exists():
        return {}

    with open(secrets_path, encoding="utf-8") as f:
        secrets = yaml.safe_load(f) or {}

    if not isinstance(secrets, dict):
        return {}

    return _flatten_secrets_mapping(secrets)


DEFAULT_PROVIDER_BASE_URLS: dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com/v1",
    "google": "https://generativelanguage.googleapis.com/v1beta",
    "mistral": "https://api.mistral.ai/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "deepseek": "https://api.deepseek.com/v1",
    "minimax": "https://api.minimax.chat/v1",
    "kimi": "https://api.moonshot.ai/v1",
}


class AppConfig(BaseSettings):
    """Configuration with JSON file + secrets.yml + env var support.

    Load order (later overrides earlier):
    1. config.json - base configuration
    2. config.yml - optional repo-root overlay
    3. secrets.yml - sensitive values
    4. Environment variables - runtime overrides

    Prefix: AGENT_ (e.g., AGENT_DATABASE_URL)
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database settings
    database_url: str = Field(default="sqlite+aiosqlite:///./agent.db")
    auto_create_tables: bool = Field(
        default=True,
        description="If true, create tables from ORM metadata on startup.",
    )

    # Outbound call bounds
    request_timeout_seconds: float = Field(
        default=60.0, description="Timeout for each LLM provider HTTP call."
    )
    embedding_timeout_seconds: float = Field(
        default=20.0, description="Timeout for each embedding HTTP call."
    )

    # Inbound message bounds
    max_message_chars: int = Field(
        default=32000,
        description="Longest accepted inbound message; longer requests are rejected with 422.",
    )

    # Context assembly
    recent_context_messages: int = Field(
        default=10, description="Recent memory entries replayed before the user turn."
    )
    semantic_memory_limit: int = Field(
        default=8, description="Maximum semantically related memories retrieved per message."
    )

    # Agent-to-agent delegation
    max_delegation_depth: int = Field(
        default=3,
        description="Maximum nested delegate_to_agent hops started from one message.",
    )

    # Credentials
    credential_codec: CredentialCodecKind = Field(
        default=CredentialCodecKind.PLAIN,
        description=(
            "Decoder for stored provider API keys. 'base64' only exists to read "
            "legacy rows; it is not encryption."
        ),
    )

    # Embeddings
    embedding_model: str = Field(default="text-embedding-3-small")
    openrouter_embedding_model: str = Field(default="openai/text-embedding-3-small")

    # Provider endpoints
    provider_base_urls: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_PROVIDER_BASE_URLS)
    )
    openrouter_referer: str = Field(default="https://agentdesk.local")
    openrouter_title: str = Field(default="AgentDesk")

    # Observability / trace logging
    trace_enabled: bool = Field(
        default=True,
        description="Emit structured, redacted trace events for message processing.",
    )
    trace_model_io_enabled: bool = Field(
        default=False,
        description="Include sanitized previews of user input and model output in traces.",
    )
    trace_max_chars: int = Field(default=2000)
    log_level: str = Field(default="INFO")

    # API settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8742)

    # Timezone settings
    timezone: str = Field(
        default="UTC",
        description="Timezone for the current date/time line in system prompts.",
    )

    @field_validator(
        "recent_context_messages",
        "semantic_memory_limit",
        "max_delegation_depth",
        "trace_max_chars",
    )
    @classmethod
    def _non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("must be >= 0")
        return value

    @field_validator("request_timeout_seconds", "embedding_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be > 0")
        return value

    @field_validator("max_message_chars")
    @classmethod
    def _positive_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be > 0")
        return value

    def base_url_for(self, provider: str) -> str | None:
        """Default base URL for a provider, if one is configured."""
        return self.provider_base_urls.get(provider) or DEFAULT_PROVIDER_BASE_URLS.get(provider)

    @classmethod
    def from_json_file(
        cls,
        config_path: str = "config.json",
        secrets_path: str = "secrets.yml",
    ) -> "AppConfig":
        """Load config from JSON + secrets.yml with env var overrides.

        Args:
            config_path: Path to JSON config file.
            secrets_path: Path to secrets YAML file.

        Returns:
            Configured AppConfig instance.
        """
        import os

        config_data = {}

        json_path = Path(config_path)
        if json_path.exists():
            with open(json_path, encoding="utf-8") as f:
                config_data = json.load(f)

        # Optional config.yml overlay (repo-root) for non-secret config.
        repo_root = _find_repo_root(start=Path(__file__))
        cfg_yml = repo_root / "config.yml"
        if cfg_yml.is_file():
            with cfg_yml.open("r", encoding="utf-8") as f:
                yml_data = yaml.safe_load(f) or {}
            if isinstance(yml_data, dict):
                config_data.update(yml_data)

        config_data.update(_load_secrets(Path(secrets_path)))

        # Drop file values that an env var overrides so pydantic-settings
        # applies the env value instead of the init kwarg.
        env_prefix = "AGENT_"
        for key in [k for k in config_data if f"{env_prefix}{k.upper()}" in os.environ]:
            del config_data[key]

        return cls(**config_data)
