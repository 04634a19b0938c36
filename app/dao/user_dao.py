"""User and agent data access operations."""

import uuid
from datetime import datetime

from sqlalchemy import select

from app.dao.base import BaseDAO
from app.models.domain import Agent, User
from app.models.orm import AgentModel, UserModel


def _to_user(model: UserModel) -> User:
    return User(
        id=model.id,
        name=model.name,
        llm_provider=model.llm_provider,
        llm_model=model.llm_model,
        created_at=model.created_at,
    )


def _to_agent(model: AgentModel) -> Agent:
    return Agent(
        id=model.id,
        user_id=model.user_id,
        name=model.name,
        slug=model.slug,
        is_default=model.is_default,
        llm_provider=model.llm_provider,
        llm_model=model.llm_model,
        custom_instructions=model.custom_instructions,
        created_at=model.created_at,
    )


class UserDAO(BaseDAO[User]):
    """Data access object for User operations.

    All methods return Pydantic User models, never SQLAlchemy objects.
    """

    async def create(
        self,
        user_id: str,
        *,
        name: str | None = None,
        llm_provider: str = "openai",
        llm_model: str = "gpt-4o-mini",
    ) -> User:
        """Create a new user.

        Args:
            user_id: Unique user identifier.
            name: Display name used as the agent owner's name in prompts.
            llm_provider: Default provider for the user's agents.
            llm_model: Default model for the user's agents.

        Returns:
            Created User domain model.
        """
        async with self._db.session() as session:
            user_model = UserModel(
                id=user_id,
                name=name,
                llm_provider=llm_provider,
                llm_model=llm_model,
                created_at=datetime.utcnow(),
            )
            session.add(user_model)
            await session.flush()
            return _to_user(user_model)

    async def get_by_id(self, user_id: str) -> User | None:
        async with self._db.session() as session:
            user_model = await session.get(UserModel, user_id)
            return _to_user(user_model) if user_model is not None else None


class AgentDAO(BaseDAO[Agent]):
    """Data access object for a user's agents."""

    async def create(
        self,
        user_id: str,
        name: str,
        slug: str,
        *,
        is_default: bool = False,
        llm_provider: str | None = None,
        llm_model: str | None = None,
        custom_instructions: str | None = None,
        agent_id: str | None = None,
    ) -> Agent:
        async with self._db.session() as session:
            agent_model = AgentModel(
                id=agent_id or uuid.uuid4().hex,
                user_id=user_id,
                name=name,
                slug=slug,
                is_default=is_default,
                llm_provider=llm_provider,
                llm_model=llm_model,
                custom_instructions=custom_instructions,
                created_at=datetime.utcnow(),
            )
            session.add(agent_model)
            await session.flush()
            return _to_agent(agent_model)

    async def get_by_id(self, agent_id: str) -> Agent | None:
        async with self._db.session() as session:
            agent_model = await session.get(AgentModel, agent_id)
            return _to_agent(agent_model) if agent_model is not None else None

    async def get_by_slug(self, user_id: str, slug: str) -> Agent | None:
        """Slugs are unique per user; other users' agents are never returned."""
        async with self._db.session() as session:
            result = await session.execute(
                select(AgentModel)
                .where(AgentModel.user_id == user_id)
                .where(AgentModel.slug == slug)
            )
            agent_model = result.scalar_one_or_none()
            return _to_agent(agent_model) if agent_model is not None else None

    async def get_default(self, user_id: str) -> Agent | None:
        """The user's default agent, else their oldest agent, else None."""
        async with self._db.session() as session:
            result = await session.execute(
                select(AgentModel)
                .where(AgentModel.user_id == user_id)
                .order_by(AgentModel.is_default.desc(), AgentModel.created_at.asc())
                .limit(1)
            )
            agent_model = result.scalar_one_or_none()
            return _to_agent(agent_model) if agent_model is not None else None
