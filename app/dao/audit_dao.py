"""Security flag and audit log data access operations."""

from datetime import datetime
from typing import Any

from sqlalchemy import select

from app.dao.base import BaseDAO
from app.enums import AuditStatus, CallerType, FlagSeverity, FlagType
from app.models.domain import AuditLogEntry, SecurityFlagRecord
from app.models.orm import AuditLogModel, SecurityFlagModel


def _to_flag(model: SecurityFlagModel) -> SecurityFlagRecord:
    return SecurityFlagRecord(
        id=model.id,
        user_id=model.user_id,
        source=model.source,
        flag_type=FlagType(model.flag_type),
        severity=FlagSeverity(model.severity),
        pattern=model.pattern,
        input_snippet=model.input_snippet,
        action=model.action,
        timestamp=model.timestamp,
    )


def _to_entry(model: AuditLogModel) -> AuditLogEntry:
    return AuditLogEntry(
        id=model.id,
        user_id=model.user_id,
        action=model.action,
        resource=model.resource,
        caller_type=CallerType(model.caller_type),
        caller_identity=model.caller_identity,
        token_count=model.token_count,
        status=AuditStatus(model.status),
        details=model.details,
        timestamp=model.timestamp,
    )


class SecurityFlagDAO(BaseDAO[SecurityFlagRecord]):
    async def log(
        self,
        user_id: str,
        source: str,
        flag_type: FlagType,
        severity: FlagSeverity,
        pattern: str,
        input_snippet: str,
        action: str,
    ) -> SecurityFlagRecord:
        async with self._db.session() as session:
            model = SecurityFlagModel(
                user_id=user_id,
                source=source,
                flag_type=FlagType(flag_type).value,
                severity=FlagSeverity(severity).value,
                pattern=pattern,
                input_snippet=input_snippet,
                action=action,
                timestamp=datetime.utcnow(),
            )
            session.add(model)
            await session.flush()
            return _to_flag(model)

    async def list_by_user(self, user_id: str, limit: int = 50) -> list[SecurityFlagRecord]:
        async with self._db.session() as session:
            result = await session.execute(
                select(SecurityFlagModel)
                .where(SecurityFlagModel.user_id == user_id)
                .order_by(SecurityFlagModel.timestamp.desc(), SecurityFlagModel.id.desc())
                .limit(limit)
            )
            return [_to_flag(m) for m in result.scalars().all()]


class AuditLogDAO(BaseDAO[AuditLogEntry]):
    async def log(
        self,
        user_id: str,
        action: str,
        resource: str,
        caller_type: CallerType,
        status: AuditStatus,
        *,
        caller_identity: str | None = None,
        token_count: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditLogEntry:
        async with self._db.session() as session:
            model = AuditLogModel(
                user_id=user_id,
                action=action,
                resource=resource,
                caller_type=CallerType(caller_type).value,
                caller_identity=caller_identity,
                token_count=token_count,
                status=AuditStatus(status).value,
                details=details,
                timestamp=datetime.utcnow(),
            )
            session.add(model)
            await session.flush()
            return _to_entry(model)

    async def list_by_user(self, user_id: str, limit: int = 50) -> list[AuditLogEntry]:
        async with self._db.session() as session:
            result = await session.execute(
                select(AuditLogModel)
                .where(AuditLogModel.user_id == user_id)
                .order_by(AuditLogModel.timestamp.desc(), AuditLogModel.id.desc())
                .limit(limit)
            )
            return [_to_entry(m) for m in result.scalars().all()]
