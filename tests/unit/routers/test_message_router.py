"""Unit tests for the message and health routers.

Tests HTTP endpoint behavior, camelCase request/response bodies,
and delegation to MessageProcessor.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.enums import Channel
from app.models.agent import ProcessMessageResult
from app.routers import create_health_router, create_message_router


@pytest.fixture
def mock_processor():
    processor = AsyncMock()
    processor.process_message.return_value = ProcessMessageResult(response="4", tokens_used=12)
    return processor


@pytest.fixture
def client(mock_processor):
    app = FastAPI()
    app.include_router(create_health_router())
    app.include_router(create_message_router(mock_processor))
    return TestClient(app)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestProcessMessage:
    def test_returns_camel_case_result(self, client, mock_processor):
        response = client.post(
            "/api/messages",
            json={"userId": "user-1", "message": "What's 2+2?"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "response": "4",
            "tokensUsed": 12,
            "blocked": False,
            "securityFlags": [],
        }
        mock_processor.process_message.assert_awaited_once_with(
            "user-1",
            "What's 2+2?",
            Channel.API,
            agent_id=None,
            caller_id=None,
        )

    def test_forwards_channel_agent_and_caller(self, client, mock_processor):
        client.post(
            "/api/messages",
            json={
                "userId": "user-1",
                "message": "Draft the post",
                "channel": "a2a",
                "agentId": "agent-b",
                "callerId": "agent-a",
            },
        )

        mock_processor.process_message.assert_awaited_once_with(
            "user-1",
            "Draft the post",
            Channel.A2A,
            agent_id="agent-b",
            caller_id="agent-a",
        )

    def test_blocked_result_is_still_200(self, client, mock_processor):
        mock_processor.process_message.return_value = ProcessMessageResult(
            response="refused", blocked=True, security_flags=["injection"]
        )

        response = client.post("/api/messages", json={"userId": "user-1", "message": "jailbreak"})

        assert response.status_code == 200
        assert response.json()["blocked"] is True
        assert response.json()["securityFlags"] == ["injection"]

    @pytest.mark.parametrize(
        "body",
        [
            {"userId": "  ", "message": "hello"},
            {"userId": "user-1", "message": ""},
        ],
    )
    def test_blank_input_is_rejected(self, client, mock_processor, body):
        response = client.post("/api/messages", json=body)

        assert response.status_code == 400
        mock_processor.process_message.assert_not_awaited()

    def test_unknown_channel_is_rejected(self, client, mock_processor):
        response = client.post(
            "/api/messages",
            json={"userId": "user-1", "message": "hi", "channel": "carrier-pigeon"},
        )

        assert response.status_code == 422
        mock_processor.process_message.assert_not_awaited()

    def test_oversized_message_is_rejected(self, mock_processor):
        app = FastAPI()
        app.include_router(create_message_router(mock_processor, max_message_chars=100))
        client = TestClient(app)

        response = client.post("/api/messages", json={"userId": "user-1", "message": "a" * 101})

        assert response.status_code == 422
        assert "100" in response.json()["detail"]
        mock_processor.process_message.assert_not_awaited()

    def test_message_at_limit_is_accepted(self, mock_processor):
        app = FastAPI()
        app.include_router(create_message_router(mock_processor, max_message_chars=100))
        client = TestClient(app)

        response = client.post("/api/messages", json={"userId": "user-1", "message": "a" * 100})

        assert response.status_code == 200
        mock_processor.process_message.assert_awaited_once()
