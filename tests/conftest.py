"""Pytest configuration and fixtures."""

import logging

import pytest
import pytest_asyncio

from app.config import AppConfig
from app.database import Database

# Configure pytest-asyncio to auto-detect async tests
pytest_plugins = ("pytest_asyncio",)


def pytest_configure(config: pytest.Config) -> None:
    """Keep HTTP client chatter out of captured test logs."""
    for name in ["httpx", "httpcore", "aiosqlite"]:
        logging.getLogger(name).setLevel(logging.WARNING)


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture
def app_config() -> AppConfig:
    """Configuration isolated from config files and AGENT_* env vars."""
    return AppConfig(
        database_url="sqlite+aiosqlite:///:memory:",
        trace_enabled=True,
        timezone="UTC",
    )


@pytest_asyncio.fixture
async def test_db():
    """Create a fresh in-memory database for each test."""
    db = Database("sqlite+aiosqlite:///:memory:")
    await db.init_db()
    yield db
    await db.close()
