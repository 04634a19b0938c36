"""Async SQLAlchemy database setup."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


class Database:
    """Async database connection manager.

    Provides async session management with automatic transaction handling.
    All database operations should use the session() context manager.
    """

    def __init__(self, database_url: str):
        """Initialize database with connection URL.

        Args:
            database_url: SQLAlchemy database URL. A plain ``sqlite:///`` URL is
                converted to ``sqlite+aiosqlite:///``. In-memory SQLite shares
                a single connection so every session sees the same tables.
        """
        is_sqlite = database_url.startswith("sqlite")
        if database_url.startswith("sqlite:///"):
            database_url = database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        engine_kwargs: dict = {"echo": False}
        if is_sqlite:
            engine_kwargs["connect_args"] = {"timeout": 30}
            if ":memory:" in database_url:
                engine_kwargs["connect_args"]["check_same_thread"] = False
                engine_kwargs["poolclass"] = StaticPool

        self._engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)
        self._is_sqlite = is_sqlite

        self._async_session: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def engine(self) -> AsyncEngine:
        """Get the async engine instance."""
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a transactional scope around a series of operations.

        Commits on success, rolls back and re-raises on exception.

        Yields:
            AsyncSession: An async SQLAlchemy session.
        """
        async with self._async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init_db(self) -> None:
        """Create all tables defined in Base.metadata if they don't exist."""
        # Register ORM tables on Base.metadata.
        import app.models.orm  # noqa: F401

        async with self._engine.begin() as conn:
            if self._is_sqlite and conn.dialect.name == "sqlite":
                await conn.execute(text("PRAGMA busy_timeout=30000"))
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections and dispose of the engine."""
        await self._engine.dispose()
