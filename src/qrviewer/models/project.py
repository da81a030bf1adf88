"""Project and ModelVersion models - append-only reference data."""

from datetime import datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.qrviewer.models.base import utc_now

MAX_SLUG_LENGTH = 200
MAX_VERSION_LENGTH = 100
MAX_URL_LENGTH = 2048


class Project(SQLModel, table=True):
    """A building/site namespace identified by a human-chosen slug."""

    __tablename__ = "projects"

    id: int | None = Field(default=None, primary_key=True)
    slug: str = Field(max_length=MAX_SLUG_LENGTH, unique=True, index=True)
    name: str = Field(max_length=MAX_SLUG_LENGTH)
    created_at: datetime = Field(default_factory=utc_now)


class ModelVersion(SQLModel, table=True):
    """One dated snapshot of a building model file, scoped to a project.

    "Latest" is the row with the greatest created_at for the project;
    ties go to the greater id (the later insert).
    """

    __tablename__ = "model_versions"
    __table_args__ = (
        UniqueConstraint("project_id", "version", name="uq_model_versions_project_version"),
    )

    id: int | None = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    version: str = Field(max_length=MAX_VERSION_LENGTH)
    ifc_file_url: str = Field(max_length=MAX_URL_LENGTH)
    created_at: datetime = Field(default_factory=utc_now, index=True)
