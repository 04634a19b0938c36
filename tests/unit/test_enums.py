"""Unit tests for StrEnum definitions."""

from app.enums import (
    ActionType,
    Channel,
    ModelProvider,
    ScanSeverity,
    TaskStatus,
)


class TestModelProvider:
    def test_values(self):
        assert ModelProvider.OPENAI == "openai"
        assert ModelProvider.GOOGLE == "google"
        assert ModelProvider.KIMI.value == "kimi"

    def test_all_byok_providers_present(self):
        assert {p.value for p in ModelProvider} == {
            "openai",
            "anthropic",
            "google",
            "mistral",
            "openrouter",
            "deepseek",
            "minimax",
            "kimi",
        }


class TestActionType:
    def test_closed_set(self):
        assert len(ActionType) == 11
        assert ActionType("delegate_to_agent") == ActionType.DELEGATE_TO_AGENT


class TestOtherEnums:
    def test_channel_from_string(self):
        assert Channel("a2a") == Channel.A2A

    def test_scan_severity_values(self):
        assert [s.value for s in ScanSeverity] == ["safe", "warn", "block"]

    def test_task_status_is_str(self):
        assert isinstance(TaskStatus.COMPLETED, str)
        assert f"{TaskStatus.FAILED}" == "failed"
