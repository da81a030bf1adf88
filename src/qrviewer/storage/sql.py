"""Relational storage backend (SQLite in WAL mode by default, PostgreSQL supported).

Every mutating call runs in its own transaction and commits before returning,
so a write is durable as soon as the call returns.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlmodel import SQLModel

from src.qrviewer.core.exceptions import ConflictError, NotFoundError, StorageError
from src.qrviewer.core.logging import get_logger
from src.qrviewer.models import ModelVersion, Project, TokenView, ViewerToken, utc_now
from src.qrviewer.repositories import (
    ModelVersionRepository,
    ProjectRepository,
    ViewerTokenRepository,
)
from src.qrviewer.storage.base import Clock, StorageEngine

logger = get_logger(__name__)

# PostgreSQL SQLSTATE for foreign_key_violation
_PG_FOREIGN_KEY_VIOLATION = "23503"


def _is_foreign_key_violation(error: IntegrityError) -> bool:
    orig = error.orig
    if getattr(orig, "sqlstate", None) == _PG_FOREIGN_KEY_VIOLATION:
        return True
    return "FOREIGN KEY" in str(orig).upper()


class SQLStorageEngine(StorageEngine):
    """Storage engine over a SQLAlchemy engine and the SQLModel tables."""

    backend_name = "sql"

    def __init__(self, engine: Engine, clock: Clock = utc_now):
        super().__init__(clock)
        self.engine = engine

    def create_schema(self) -> None:
        """Create all tables directly from metadata (tests and throwaway databases).

        Deployments use Alembic migrations instead, see core.migrations.
        """
        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def _transaction(
        self,
        write: bool = False,
        conflict: str = "Unique constraint violated",
        missing_parent: str = "Referenced row does not exist",
    ) -> Iterator[Session]:
        """Open a session, committing on success when write=True.

        Integrity errors become ConflictError (uniqueness) or NotFoundError
        (foreign key); any other database error becomes StorageError.
        """
        session = Session(self.engine, expire_on_commit=False, autoflush=False)
        try:
            yield session
            if write:
                session.commit()
        except IntegrityError as e:
            session.rollback()
            if _is_foreign_key_violation(e):
                raise NotFoundError(missing_parent) from e
            raise ConflictError(conflict) from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database operation failed", error=str(e))
            raise StorageError(f"Database operation failed: {e}") from e
        finally:
            session.close()

    # Projects

    def create_project(self, slug: str, name: str) -> int:
        with self._transaction(
            write=True, conflict=f"Project with slug '{slug}' already exists"
        ) as session:
            project = Project(slug=slug, name=name, created_at=self.clock())
            ProjectRepository(session).add(project)
            project_id = project.id
        if project_id is None:
            raise StorageError("Database did not assign a project id")
        return project_id

    def get_project_by_slug(self, slug: str) -> Project | None:
        with self._transaction() as session:
            return ProjectRepository(session).get_by_slug(slug)

    # Model versions

    def create_model_version(self, project_id: int, version: str, ifc_file_url: str) -> int:
        with self._transaction(
            write=True,
            conflict=f"Model version '{version}' already exists for project",
            missing_parent="Project does not exist",
        ) as session:
            model_version = ModelVersion(
                project_id=project_id,
                version=version,
                ifc_file_url=ifc_file_url,
                created_at=self.clock(),
            )
            ModelVersionRepository(session).add(model_version)
            model_version_id = model_version.id
        if model_version_id is None:
            raise StorageError("Database did not assign a model version id")
        return model_version_id

    def get_model_version(self, project_id: int, version: str) -> ModelVersion | None:
        with self._transaction() as session:
            return ModelVersionRepository(session).get_by_label(project_id, version)

    def get_latest_model_version(self, project_id: int) -> ModelVersion | None:
        with self._transaction() as session:
            return ModelVersionRepository(session).get_latest(project_id)

    def list_model_versions(self, project_id: int) -> list[ModelVersion]:
        with self._transaction() as session:
            return ModelVersionRepository(session).list_for_project(project_id)

    # Viewer tokens

    def create_token(
        self,
        token: str,
        project_id: int,
        model_version_id: int,
        ifc_global_id: str,
        expires_at: datetime,
    ) -> None:
        with self._transaction(
            write=True,
            conflict="Token already exists",
            missing_parent="Referenced project or model version does not exist",
        ) as session:
            ViewerTokenRepository(session).add(
                ViewerToken(
                    token=token,
                    project_id=project_id,
                    model_version_id=model_version_id,
                    ifc_global_id=ifc_global_id,
                    expires_at=expires_at,
                    created_at=self.clock(),
                )
            )

    def get_token_data(self, token: str) -> TokenView | None:
        with self._transaction() as session:
            return ViewerTokenRepository(session).get_view(token)

    def delete_expired_tokens(self, now: datetime) -> int:
        with self._transaction(write=True) as session:
            return ViewerTokenRepository(session).delete_expired(now)

    def close(self) -> None:
        self.engine.dispose()
