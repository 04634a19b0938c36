"""Data Access Objects package."""

from .audit_dao import AuditLogDAO, SecurityFlagDAO
from .base import BaseDAO
from .credential_dao import CredentialDAO
from .feed_dao import FeedDAO
from .memory_dao import MemoryDAO, ThoughtDAO
from .skill_dao import SkillDAO, SkillNotFoundError
from .task_dao import BoardColumnNotFoundError, TaskDAO, TaskNotFoundError
from .user_dao import AgentDAO, UserDAO

__all__ = [
    "AgentDAO",
    "AuditLogDAO",
    "BaseDAO",
    "BoardColumnNotFoundError",
    "CredentialDAO",
    "FeedDAO",
    "MemoryDAO",
    "SecurityFlagDAO",
    "SkillDAO",
    "SkillNotFoundError",
    "TaskDAO",
    "TaskNotFoundError",
    "ThoughtDAO",
    "UserDAO",
]
