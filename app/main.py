"""Application entry point and bootstrap.

This module initializes all application components, wires dependencies,
and provides the main entry point for running the application.
"""

import asyncio
import logging
import signal

from fastapi import FastAPI

from app.config import AppConfig
from app.database import Database
from app.logging_filters import configure_logging, install_uvicorn_access_log_filters
from app.routers import create_health_router, create_message_router
from app.security.credentials import codec_for
from app.services.agent.message_processing import MessageProcessor
from app.services.agent.ports import SpeechSynthesizer
from app.services.agent.store import SqlAgentStore
from app.services.providers import ProviderRegistry

logger = logging.getLogger(__name__)


class Application:
    """Main application container.

    Manages all application components and their lifecycle.
    Provides dependency injection and graceful shutdown.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        providers: ProviderRegistry | None = None,
        speech: SpeechSynthesizer | None = None,
    ) -> None:
        """Initialize the application with configuration.

        Args:
            config: Application configuration.
            providers: Optional prebuilt provider registry (tests inject one
                backed by ``httpx.MockTransport``).
            speech: Optional TTS backend for ``generate_audio`` actions.
        """
        self.config = config
        self._shutdown_event = asyncio.Event()

        self.database: Database | None = None
        self.providers: ProviderRegistry | None = providers
        self.speech = speech
        self.store: SqlAgentStore | None = None
        self.message_processor: MessageProcessor | None = None
        self.fastapi_app: FastAPI | None = None

    async def setup(self) -> None:
        """Create the database, provider registry, store and processor."""
        logger.info("Setting up application components...")

        self.database = Database(self.config.database_url)
        if self.config.auto_create_tables:
            await self.database.init_db()
            logger.info("Database tables ensured")

        if self.providers is None:
            self.providers = ProviderRegistry.from_config(self.config)
        logger.info("Providers registered: %s", ", ".join(self.providers.names()))

        self.store = SqlAgentStore(
            self.database,
            self.config,
            codec=codec_for(self.config.credential_codec),
        )
        self.message_processor = MessageProcessor(
            self.config,
            self.store,
            self.providers,
            speech=self.speech,
        )
        logger.info("Application setup complete")

    def create_fastapi_app(self) -> FastAPI:
        """Create the FastAPI app with routers bound to this application."""
        if self.message_processor is None:
            raise RuntimeError("Application not set up")

        self.fastapi_app = FastAPI(
            title="AgentDesk",
            description="Personal agent runtime with BYOK LLM routing",
            version="0.1.0",
        )
        self.fastapi_app.include_router(create_health_router())
        self.fastapi_app.include_router(
            create_message_router(self.message_processor, self.config.max_message_chars)
        )
        return self.fastapi_app

    async def shutdown(self) -> None:
        """Gracefully shutdown all application components."""
        if self._shutdown_event.is_set():
            return
        logger.info("Initiating graceful shutdown...")
        self._shutdown_event.set()

        if self.providers is not None:
            try:
                await self.providers.aclose()
            except Exception as e:
                logger.error("Error closing provider client: %s", e)

        if self.database is not None:
            try:
                await self.database.close()
            except Exception as e:
                logger.error("Error closing database: %s", e)

        logger.info("Graceful shutdown complete")

    def setup_signal_handlers(self) -> None:
        """Trigger graceful shutdown on SIGINT and SIGTERM."""
        loop = asyncio.get_running_loop()

        def signal_handler(sig: signal.Signals) -> None:
            logger.info("Received signal %s, initiating shutdown...", sig.name)
            asyncio.create_task(self.shutdown())

        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))

        logger.info("Signal handlers registered")


# Global application instance
_app: Application | None = None


def get_application() -> Application:
    """Get the global application instance.

    Raises:
        RuntimeError: If application not initialized.
    """
    if _app is None:
        raise RuntimeError("Application not initialized")
    return _app


async def create_app(config: AppConfig | None = None) -> Application:
    """Create and setup the application.

    Args:
        config: Optional configuration. If not provided, loads from
                config.json with environment variable overrides.

    Returns:
        Initialized Application instance.
    """
    global _app

    if config is None:
        config = AppConfig.from_json_file()

    _app = Application(config)
    await _app.setup()
    _app.create_fastapi_app()

    return _app


async def main(reload: bool = False) -> None:
    """Run the application under uvicorn until shutdown is requested.

    Args:
        reload: Enable hot reload during development.
    """
    import uvicorn

    config = AppConfig.from_json_file()
    configure_logging(config.log_level)
    logger.info("Starting AgentDesk...")

    try:
        app = await create_app(config)
        app.setup_signal_handlers()

        logger.info(
            "Application running. API available at http://%s:%d",
            config.api_host,
            config.api_port,
        )

        uvicorn_config = uvicorn.Config(
            app.fastapi_app,
            host=config.api_host,
            port=config.api_port,
            log_level=config.log_level.lower(),
            reload=reload,
        )
        uvicorn_config.load()
        install_uvicorn_access_log_filters()

        server = uvicorn.Server(uvicorn_config)
        server.install_signal_handlers = lambda: None  # We handle signals

        await server.serve()

    except Exception as e:
        logger.exception("Application error: %s", e)
        raise
    finally:
        if _app:
            await _app.shutdown()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Run AgentDesk")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload")
    args = parser.parse_args()

    asyncio.run(main(reload=args.reload))
