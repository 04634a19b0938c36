"""Agent memory and thought data access operations."""

import math
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select

from app.dao.base import BaseDAO
from app.enums import MemoryType, ThoughtType
from app.models.domain import AgentThought, MemoryEntry
from app.models.orm import AgentMemoryModel, AgentThoughtModel


def _to_memory(model: AgentMemoryModel) -> MemoryEntry:
    return MemoryEntry(
        id=model.id,
        user_id=model.user_id,
        agent_id=model.agent_id,
        type=MemoryType(model.type),
        content=model.content,
        source=model.source,
        embedding=model.embedding,
        metadata=model.meta,
        archived=model.archived,
        created_at=model.created_at,
    )


def cosine_similarity(a: list[float], b: list[float]) -> float:
    """Cosine similarity; 0.0 for mismatched lengths or zero vectors."""
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    if norm == 0:
        return 0.0
    return dot / norm


class MemoryDAO(BaseDAO[MemoryEntry]):
    """Data access object for agent memory.

    All methods return Pydantic MemoryEntry models, never SQLAlchemy objects.
    """

    async def save(
        self,
        user_id: str,
        content: str,
        source: str,
        *,
        agent_id: str | None = None,
        type: MemoryType = MemoryType.CONVERSATION,
        embedding: list[float] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> MemoryEntry:
        async with self._db.session() as session:
            memory_model = AgentMemoryModel(
                id=uuid.uuid4().hex,
                user_id=user_id,
                agent_id=agent_id,
                type=type.value,
                content=content,
                source=source,
                embedding=embedding,
                meta=metadata,
                archived=False,
                created_at=datetime.utcnow(),
            )
            session.add(memory_model)
            await session.flush()
            return _to_memory(memory_model)

    async def list_recent(
        self,
        user_id: str,
        agent_id: str | None,
        limit: int,
    ) -> list[MemoryEntry]:
        """Newest ``limit`` non-archived memories, returned oldest first.

        Narrowed to the agent when one is given, otherwise the whole user.
        """
        if limit <= 0:
            return []
        query = select(AgentMemoryModel).where(
            AgentMemoryModel.user_id == user_id,
            AgentMemoryModel.archived.is_(False),
        )
        if agent_id:
            query = query.where(AgentMemoryModel.agent_id == agent_id)
        query = query.order_by(AgentMemoryModel.created_at.desc()).limit(limit)

        async with self._db.session() as session:
            result = await session.execute(query)
            memories = [_to_memory(m) for m in result.scalars().all()]
        return sorted(memories, key=lambda m: m.created_at)

    async def get_by_ids(
        self,
        user_id: str,
        agent_id: str | None,
        memory_ids: list[str],
    ) -> list[MemoryEntry]:
        """Memories by id, dropping other users', other agents' and archived ones."""
        if not memory_ids:
            return []
        query = (
            select(AgentMemoryModel)
            .where(AgentMemoryModel.id.in_(memory_ids))
            .where(AgentMemoryModel.user_id == user_id)
            .where(AgentMemoryModel.archived.is_(False))
        )
        if agent_id:
            query = query.where(AgentMemoryModel.agent_id == agent_id)
        query = query.order_by(AgentMemoryModel.created_at.asc())

        async with self._db.session() as session:
            result = await session.execute(query)
            return [_to_memory(m) for m in result.scalars().all()]

    async def vector_search(
        self,
        user_id: str,
        vector: list[float],
        limit: int,
    ) -> list[str]:
        """Ids of the user's memories most similar to ``vector``, best first."""
        if limit <= 0 or not vector:
            return []
        async with self._db.session() as session:
            result = await session.execute(
                select(AgentMemoryModel.id, AgentMemoryModel.embedding)
                .where(AgentMemoryModel.user_id == user_id)
                .where(AgentMemoryModel.archived.is_(False))
                .where(AgentMemoryModel.embedding.is_not(None))
            )
            rows = result.all()

        scored = [
            (cosine_similarity(vector, embedding), memory_id)
            for memory_id, embedding in rows
            if isinstance(embedding, list) and embedding
        ]
        scored.sort(key=lambda item: item[0], reverse=True)
        return [memory_id for _, memory_id in scored[:limit]]


class ThoughtDAO(BaseDAO[AgentThought]):
    """Persisted thinking blocks."""

    async def save(
        self,
        user_id: str,
        agent_id: str,
        content: str,
        *,
        type: ThoughtType = ThoughtType.REASONING,
        context: str | None = None,
        related_task_id: str | None = None,
    ) -> AgentThought:
        async with self._db.session() as session:
            model = AgentThoughtModel(
                id=uuid.uuid4().hex,
                user_id=user_id,
                agent_id=agent_id,
                type=type.value,
                content=content,
                context=context,
                related_task_id=related_task_id,
                created_at=datetime.utcnow(),
            )
            session.add(model)
            await session.flush()
            return AgentThought(
                id=model.id,
                user_id=model.user_id,
                agent_id=model.agent_id,
                type=ThoughtType(model.type),
                content=model.content,
                context=model.context,
                related_task_id=model.related_task_id,
                created_at=model.created_at,
            )

    async def list_by_agent(self, agent_id: str, limit: int = 20) -> list[AgentThought]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AgentThoughtModel)
                .where(AgentThoughtModel.agent_id == agent_id)
                .order_by(AgentThoughtModel.created_at.desc())
                .limit(limit)
            )
            return [
                AgentThought(
                    id=t.id,
                    user_id=t.user_id,
                    agent_id=t.agent_id,
                    type=ThoughtType(t.type),
                    content=t.content,
                    context=t.context,
                    related_task_id=t.related_task_id,
                    created_at=t.created_at,
                )
                for t in result.scalars().all()
            ]
