"""Base repository with common CRUD operations."""

from typing import Generic, TypeVar

from sqlalchemy.orm import Session
from sqlmodel import SQLModel

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """Base repository providing common database operations.

    Repositories handle data access only. Transaction control (commit)
    is done by the storage engine, one transaction per engine call.
    """

    model: type[ModelType]

    def __init__(self, session: Session):
        self.session = session

    def add(self, entity: ModelType) -> None:
        """Add entity to session and flush so generated keys are populated."""
        self.session.add(entity)
        self.session.flush()
