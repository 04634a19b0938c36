"""Task board data access operations."""

import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.enums import TaskStatus
from app.models.agent import WorkflowStep
from app.models.domain import BoardColumn, Task, TaskFile
from app.models.orm import BoardColumnModel, TaskFileModel, TaskModel


class TaskNotFoundError(LookupError):
    """Task does not exist or belongs to another user."""


class BoardColumnNotFoundError(LookupError):
    """Board column does not exist or belongs to another user."""


def _to_task(model: TaskModel) -> Task:
    return Task(
        id=model.id,
        user_id=model.user_id,
        agent_id=model.agent_id,
        parent_task_id=model.parent_task_id,
        description=model.description,
        status=model.status,
        board_column_id=model.board_column_id,
        is_public=model.is_public,
        source=model.source,
        outcome_summary=model.outcome_summary,
        outcome_links=model.outcome_links,
        outcome_file_id=model.outcome_file_id,
        outcome_audio_id=model.outcome_audio_id,
        workflow_steps=[WorkflowStep.model_validate(s) for s in model.workflow_steps]
        if model.workflow_steps is not None
        else None,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_column(model: BoardColumnModel) -> BoardColumn:
    return BoardColumn(
        id=model.id,
        user_id=model.user_id,
        name=model.name,
        position=model.position,
    )


class TaskDAO(BaseDAO[Task]):
    """Data access object for Task operations.

    All methods return Pydantic Task models, never SQLAlchemy objects.
    Every mutation is scoped to the owning user.
    """

    async def create(
        self,
        user_id: str,
        description: str,
        *,
        agent_id: str | None = None,
        is_public: bool = False,
        source: str | None = None,
        parent_task_id: str | None = None,
    ) -> Task:
        """Create a pending task in the user's first board column.

        Raises:
            TaskNotFoundError: If ``parent_task_id`` is not one of the user's tasks.
        """
        now = datetime.utcnow()
        async with self._db.session() as session:
            if parent_task_id is not None:
                await self._owned_task(session, user_id, parent_task_id)

            first_column = (
                await session.execute(
                    select(BoardColumnModel)
                    .where(BoardColumnModel.user_id == user_id)
                    .order_by(BoardColumnModel.position.asc())
                    .limit(1)
                )
            ).scalar_one_or_none()

            task_model = TaskModel(
                id=uuid.uuid4().hex,
                user_id=user_id,
                agent_id=agent_id,
                parent_task_id=parent_task_id,
                description=description,
                status=TaskStatus.PENDING.value,
                board_column_id=first_column.id if first_column is not None else None,
                is_public=is_public,
                source=source,
                created_at=now,
                updated_at=now,
            )
            session.add(task_model)
            await session.flush()
            return _to_task(task_model)

    async def get_by_id(self, task_id: str) -> Task | None:
        async with self._db.session() as session:
            task_model = await session.get(TaskModel, task_id)
            return _to_task(task_model) if task_model is not None else None

    async def get_by_user(self, user_id: str) -> list[Task]:
        async with self._db.session() as session:
            result = await session.execute(
                select(TaskModel)
                .where(TaskModel.user_id == user_id)
                .order_by(TaskModel.created_at.desc())
            )
            return [_to_task(t) for t in result.scalars().all()]

    async def update(
        self,
        user_id: str,
        task_id: str,
        *,
        status: TaskStatus | None = None,
        outcome_summary: str | None = None,
        outcome_links: list[str] | None = None,
        board_column_id: str | None = None,
        board_column_name: str | None = None,
    ) -> Task:
        """Apply the given fields; None leaves a field unchanged.

        A column name is matched case-insensitively among the user's columns
        and created at the end of the board when missing.

        Raises:
            TaskNotFoundError: If the task is missing or owned by another user.
            BoardColumnNotFoundError: If ``board_column_id`` is not the user's.
        """
        async with self._db.session() as session:
            task_model = await self._owned_task(session, user_id, task_id)

            if status is not None:
                task_model.status = TaskStatus(status).value
            if outcome_summary is not None:
                task_model.outcome_summary = outcome_summary
            if outcome_links is not None:
                task_model.outcome_links = list(outcome_links)

            if board_column_id is not None:
                column = await session.get(BoardColumnModel, board_column_id)
                if column is None or column.user_id != user_id:
                    raise BoardColumnNotFoundError(board_column_id)
                task_model.board_column_id = column.id
            elif board_column_name is not None:
                column = await self._column_by_name(session, user_id, board_column_name)
                task_model.board_column_id = column.id

            task_model.updated_at = datetime.utcnow()
            await session.flush()
            return _to_task(task_model)

    async def set_workflow_steps(self, task_id: str, steps: list[WorkflowStep]) -> None:
        async with self._db.session() as session:
            task_model = await session.get(TaskModel, task_id)
            if task_model is None:
                raise TaskNotFoundError(task_id)
            task_model.workflow_steps = [s.model_dump(mode="json") for s in steps]
            task_model.updated_at = datetime.utcnow()

    async def attach_file(self, task_id: str, user_id: str, content: str) -> TaskFile:
        """Store long-form outcome text and point the task at it."""
        now = datetime.utcnow()
        async with self._db.session() as session:
            task_model = await self._owned_task(session, user_id, task_id)
            file_model = TaskFileModel(
                id=uuid.uuid4().hex,
                task_id=task_id,
                user_id=user_id,
                content=content,
                created_at=now,
            )
            session.add(file_model)
            task_model.outcome_file_id = file_model.id
            task_model.updated_at = now
            await session.flush()
            return TaskFile(
                id=file_model.id,
                task_id=file_model.task_id,
                user_id=file_model.user_id,
                content=file_model.content,
                created_at=file_model.created_at,
            )

    async def link_audio(self, task_id: str, user_id: str, storage_id: str) -> None:
        async with self._db.session() as session:
            task_model = await self._owned_task(session, user_id, task_id)
            task_model.outcome_audio_id = storage_id
            task_model.updated_at = datetime.utcnow()

    async def create_column(self, user_id: str, name: str, position: int | None = None) -> BoardColumn:
        async with self._db.session() as session:
            column = await self._insert_column(session, user_id, name, position)
            return _to_column(column)

    async def list_columns(self, user_id: str) -> list[BoardColumn]:
        async with self._db.session() as session:
            result = await session.execute(
                select(BoardColumnModel)
                .where(BoardColumnModel.user_id == user_id)
                .order_by(BoardColumnModel.position.asc())
            )
            return [_to_column(c) for c in result.scalars().all()]

    async def _owned_task(self, session: AsyncSession, user_id: str, task_id: str) -> TaskModel:
        task_model = await session.get(TaskModel, task_id)
        if task_model is None or task_model.user_id != user_id:
            raise TaskNotFoundError(task_id)
        return task_model

    async def _column_by_name(
        self, session: AsyncSession, user_id: str, name: str
    ) -> BoardColumnModel:
        result = await session.execute(
            select(BoardColumnModel)
            .where(BoardColumnModel.user_id == user_id)
            .where(func.lower(BoardColumnModel.name) == name.strip().lower())
            .limit(1)
        )
        column = result.scalar_one_or_none()
        if column is not None:
            return column
        return await self._insert_column(session, user_id, name.strip(), None)

    async def _insert_column(
        self,
        session: AsyncSession,
        user_id: str,
        name: str,
        position: int | None,
    ) -> BoardColumnModel:
        if position is None:
            current_max = (
                await session.execute(
                    select(func.max(BoardColumnModel.position)).where(
                        BoardColumnModel.user_id == user_id
                    )
                )
            ).scalar_one_or_none()
            position = 0 if current_max is None else current_max + 1
        column = BoardColumnModel(
            id=uuid.uuid4().hex,
            user_id=user_id,
            name=name,
            position=position,
        )
        session.add(column)
        await session.flush()
        return column
