import json
from collections.abc import Callable

import httpx
import pytest
import pytest_asyncio

from app.enums import MessageRole
from app.models.agent import ChatMessage


class RecordingTransport:
    """MockTransport wrapper that remembers every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]


@pytest_asyncio.fixture
async def mock_client():
    """Factory for an AsyncClient routed through a recording MockTransport."""
    clients: list[httpx.AsyncClient] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]):
        recorder = RecordingTransport(handler)
        client = httpx.AsyncClient(transport=httpx.MockTransport(recorder))
        clients.append(client)
        return client, recorder

    yield _make
    for client in clients:
        await client.aclose()


@pytest.fixture
def messages() -> list[ChatMessage]:
    return [
        ChatMessage(role=MessageRole.SYSTEM, content="You are Nova."),
        ChatMessage(role=MessageRole.USER, content="Hi"),
        ChatMessage(role=MessageRole.ASSISTANT, content="Hello!"),
        ChatMessage(role=MessageRole.USER, content="What's 2+2?"),
    ]
