"""Message API endpoints.

Routers handle HTTP concerns only - no business logic.
All message handling is delegated to MessageProcessor.
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException

from app.enums import Channel
from app.models.agent import ProcessMessageResult
from app.models.base import JsonModel

if TYPE_CHECKING:
    from app.services.agent.message_processing import MessageProcessor


class ProcessMessageRequest(JsonModel):
    """Inbound message from a channel adapter."""

    user_id: str
    message: str
    channel: Channel = Channel.API
    agent_id: str | None = None
    caller_id: str | None = None


class HealthResponse(JsonModel):
    status: str


DEFAULT_MAX_MESSAGE_CHARS = 32000


def create_message_router(
    processor: "MessageProcessor", max_message_chars: int = DEFAULT_MAX_MESSAGE_CHARS
) -> APIRouter:
    """Create message router with injected processor.

    Args:
        processor: MessageProcessor running the agent pipeline
        max_message_chars: Longest message accepted before answering 422

    Returns:
        APIRouter with message endpoints configured
    """
    router = APIRouter(prefix="/api/messages", tags=["messages"])

    @router.post("", response_model=ProcessMessageResult, response_model_by_alias=True)
    async def process_message(request: ProcessMessageRequest) -> ProcessMessageResult:
        """Run one inbound message through the agent pipeline.

        Blocked or failed runs still answer 200; the outcome is carried in
        the result body.

        Raises:
            HTTPException: 400 if the user id or message is blank,
                422 if the message exceeds the configured length
        """
        if not request.user_id.strip():
            raise HTTPException(status_code=400, detail="userId must not be empty")
        if not request.message.strip():
            raise HTTPException(status_code=400, detail="message must not be empty")
        if len(request.message) > max_message_chars:
            raise HTTPException(
                status_code=422,
                detail=f"message exceeds {max_message_chars} characters",
            )

        return await processor.process_message(
            request.user_id,
            request.message,
            request.channel,
            agent_id=request.agent_id,
            caller_id=request.caller_id,
        )

    return router


def create_health_router() -> APIRouter:
    router = APIRouter(tags=["health"])

    @router.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(status="ok")

    return router
