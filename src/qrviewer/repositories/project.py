"""Repositories for Project and ModelVersion entities."""

from sqlmodel import select

from src.qrviewer.models import ModelVersion, Project
from src.qrviewer.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Repository for Project entity."""

    model = Project

    def get_by_slug(self, slug: str) -> Project | None:
        """Get project by slug."""
        result = self.session.execute(select(Project).where(Project.slug == slug))
        return result.scalar_one_or_none()


class ModelVersionRepository(BaseRepository[ModelVersion]):
    """Repository for ModelVersion entity."""

    model = ModelVersion

    def get_by_label(self, project_id: int, version: str) -> ModelVersion | None:
        """Get a model version by its label within a project."""
        result = self.session.execute(
            select(ModelVersion).where(
                ModelVersion.project_id == project_id,
                ModelVersion.version == version,
            )
        )
        return result.scalar_one_or_none()

    def get_latest(self, project_id: int) -> ModelVersion | None:
        """Get the most recently created version.

        Ordered explicitly by created_at, then by id so that versions created
        within the same clock tick resolve to the one inserted last.
        """
        result = self.session.execute(
            select(ModelVersion)
            .where(ModelVersion.project_id == project_id)
            .order_by(
                ModelVersion.created_at.desc(),  # type: ignore[attr-defined]
                ModelVersion.id.desc(),  # type: ignore[union-attr]
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    def list_for_project(self, project_id: int) -> list[ModelVersion]:
        """List versions of a project, latest first."""
        result = self.session.execute(
            select(ModelVersion)
            .where(ModelVersion.project_id == project_id)
            .order_by(
                ModelVersion.created_at.desc(),  # type: ignore[attr-defined]
                ModelVersion.id.desc(),  # type: ignore[union-attr]
            )
        )
        return list(result.scalars().all())
