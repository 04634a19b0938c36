"""HTTP routers package."""

from .message_router import (
    HealthResponse,
    ProcessMessageRequest,
    create_health_router,
    create_message_router,
)

__all__ = [
    "create_health_router",
    "create_message_router",
    "HealthResponse",
    "ProcessMessageRequest",
]
