"""Skill profile data access operations."""

import uuid
from datetime import datetime

from sqlalchemy import or_, select

from app.dao.base import BaseDAO
from app.models.actions import SkillCapability
from app.models.domain import Skill
from app.models.orm import SkillModel


class SkillNotFoundError(LookupError):
    """Skill does not exist or belongs to another user."""


def _to_skill(model: SkillModel) -> Skill:
    return Skill(
        id=model.id,
        user_id=model.user_id,
        agent_id=model.agent_id,
        name=model.name,
        bio=model.bio or "",
        capabilities=[SkillCapability.model_validate(c) for c in (model.capabilities or [])],
        is_active=model.is_active,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _dump_capabilities(capabilities: list[SkillCapability]) -> list[dict]:
    return [{"name": c.name, "description": c.description} for c in capabilities]


class SkillDAO(BaseDAO[Skill]):
    """Data access object for skills.

    All methods return Pydantic Skill models, never SQLAlchemy objects.
    """

    async def create(
        self,
        user_id: str,
        name: str,
        *,
        agent_id: str | None = None,
        bio: str | None = None,
        capabilities: list[SkillCapability] | None = None,
        is_active: bool = True,
    ) -> Skill:
        now = datetime.utcnow()
        async with self._db.session() as session:
            skill_model = SkillModel(
                id=uuid.uuid4().hex,
                user_id=user_id,
                agent_id=agent_id,
                name=name,
                bio=bio or "",
                capabilities=_dump_capabilities(capabilities or []),
                is_active=is_active,
                created_at=now,
                updated_at=now,
            )
            session.add(skill_model)
            await session.flush()
            return _to_skill(skill_model)

    async def update(
        self,
        user_id: str,
        skill_id: str,
        *,
        name: str | None = None,
        bio: str | None = None,
        capabilities: list[SkillCapability] | None = None,
        is_active: bool | None = None,
    ) -> Skill:
        """Apply the given fields; None leaves a field unchanged.

        Raises:
            SkillNotFoundError: If the skill is missing or owned by another user.
        """
        async with self._db.session() as session:
            skill_model = await session.get(SkillModel, skill_id)
            if skill_model is None or skill_model.user_id != user_id:
                raise SkillNotFoundError(skill_id)

            if name is not None:
                skill_model.name = name
            if bio is not None:
                skill_model.bio = bio
            if capabilities is not None:
                skill_model.capabilities = _dump_capabilities(capabilities)
            if is_active is not None:
                skill_model.is_active = is_active
            skill_model.updated_at = datetime.utcnow()
            await session.flush()
            return _to_skill(skill_model)

    async def list_active_for_agent(
        self,
        user_id: str,
        agent_id: str | None,
        limit: int = 10,
    ) -> list[Skill]:
        """Active skills visible to an agent (shared ones plus its own)."""
        query = (
            select(SkillModel)
            .where(SkillModel.user_id == user_id)
            .where(SkillModel.is_active.is_(True))
        )
        if agent_id:
            query = query.where(
                or_(SkillModel.agent_id.is_(None), SkillModel.agent_id == agent_id)
            )
        query = query.order_by(SkillModel.created_at.asc()).limit(limit)

        async with self._db.session() as session:
            result = await session.execute(query)
            return [_to_skill(s) for s in result.scalars().all()]
