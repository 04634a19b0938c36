"""Base DAO abstract class."""

from abc import ABC
from typing import Generic, TypeVar

from app.database import Database

# Pydantic domain model returned by a DAO
T = TypeVar("T")


class BaseDAO(ABC, Generic[T]):
    """Abstract base class for Data Access Objects.

    DAOs return Pydantic domain models, never SQLAlchemy ORM objects, and
    open one ``Database.session()`` per operation so each call commits or
    rolls back on its own.
    """

    def __init__(self, database: Database):
        self._db = database

    @property
    def db(self) -> Database:
        return self._db
