"""ASGI entry point for uvicorn with hot reload support.

Usage:
    uvicorn app.asgi:app --reload --host 0.0.0.0 --port 8742
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from app.config import AppConfig
from app.logging_filters import configure_logging, install_uvicorn_access_log_filters
from app.main import Application
from app.routers import create_health_router, create_message_router

# Global application instance for lifespan management
_application: Application | None = None


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan for ASGI server."""
    global _application

    config = AppConfig.from_json_file()
    configure_logging(config.log_level)
    install_uvicorn_access_log_filters()
    _application = Application(config)
    await _application.setup()

    fastapi_app.include_router(
        create_message_router(_application.message_processor, config.max_message_chars)
    )

    yield

    await _application.shutdown()
    _application = None


# Create FastAPI app with lifespan
app = FastAPI(
    title="AgentDesk",
    description="Personal agent runtime with BYOK LLM routing",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(create_health_router())
