"""Feed item data access operations."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select

from app.dao.base import BaseDAO
from app.models.domain import FeedItem
from app.models.orm import FeedItemModel


def _to_item(model: FeedItemModel) -> FeedItem:
    return FeedItem(
        id=model.id,
        user_id=model.user_id,
        type=model.type,
        title=model.title,
        content=model.content,
        metadata=model.meta,
        is_public=model.is_public,
        created_at=model.created_at,
    )


class FeedDAO(BaseDAO[FeedItem]):
    async def create(
        self,
        user_id: str,
        type: str,
        title: str,
        *,
        content: str | None = None,
        metadata: dict[str, Any] | None = None,
        is_public: bool = False,
    ) -> FeedItem:
        async with self._db.session() as session:
            model = FeedItemModel(
                id=uuid.uuid4().hex,
                user_id=user_id,
                type=type,
                title=title,
                content=content,
                meta=metadata,
                is_public=is_public,
                created_at=datetime.utcnow(),
            )
            session.add(model)
            await session.flush()
            return _to_item(model)

    async def list_by_user(self, user_id: str, *, public_only: bool = False) -> list[FeedItem]:
        query = select(FeedItemModel).where(FeedItemModel.user_id == user_id)
        if public_only:
            query = query.where(FeedItemModel.is_public.is_(True))
        async with self._db.session() as session:
            result = await session.execute(query.order_by(FeedItemModel.created_at.desc()))
            return [_to_item(m) for m in result.scalars().all()]
