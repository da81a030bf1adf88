"""Storage engine contract shared by the SQL and snapshot backends."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime

from src.qrviewer.models import ModelVersion, Project, TokenView, utc_now

Clock = Callable[[], datetime]


class StorageEngine(ABC):
    """Durable persistence for projects, model versions and viewer tokens.

    All operations are synchronous and bounded. Mutating calls are durable when
    they return; reads never trigger a flush.

    Raises:
        ConflictError: On uniqueness violations (slug, (project, version), token).
        NotFoundError: When a write references a parent row that does not exist.
        StorageError: On any underlying I/O or driver failure.
    """

    backend_name: str

    def __init__(self, clock: Clock = utc_now):
        self.clock = clock

    # Projects

    @abstractmethod
    def create_project(self, slug: str, name: str) -> int:
        """Insert a project and return its id."""

    @abstractmethod
    def get_project_by_slug(self, slug: str) -> Project | None:
        """Get project by slug."""

    # Model versions

    @abstractmethod
    def create_model_version(self, project_id: int, version: str, ifc_file_url: str) -> int:
        """Insert a model version and return its id."""

    @abstractmethod
    def get_model_version(self, project_id: int, version: str) -> ModelVersion | None:
        """Get a model version by its label within a project."""

    @abstractmethod
    def get_latest_model_version(self, project_id: int) -> ModelVersion | None:
        """Get the version with the greatest created_at; ties go to the last inserted."""

    @abstractmethod
    def list_model_versions(self, project_id: int) -> list[ModelVersion]:
        """List a project's versions, latest first."""

    # Viewer tokens

    @abstractmethod
    def create_token(
        self,
        token: str,
        project_id: int,
        model_version_id: int,
        ifc_global_id: str,
        expires_at: datetime,
    ) -> None:
        """Insert a viewer token."""

    @abstractmethod
    def get_token_data(self, token: str) -> TokenView | None:
        """Read a token joined with its project and model version in one step."""

    @abstractmethod
    def delete_expired_tokens(self, now: datetime) -> int:
        """Delete every token with expires_at < now and return how many were removed."""

    def close(self) -> None:
        """Release backend resources."""
