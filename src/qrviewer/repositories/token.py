"""Repository for ViewerToken entity."""

from datetime import datetime

from sqlalchemy import delete
from sqlmodel import select

from src.qrviewer.models import ModelVersion, Project, TokenView, ViewerToken
from src.qrviewer.repositories.base import BaseRepository


class ViewerTokenRepository(BaseRepository[ViewerToken]):
    """Repository for ViewerToken entity."""

    model = ViewerToken

    def get_view(self, token: str) -> TokenView | None:
        """Join the token with its project and model version in a single query."""
        result = self.session.execute(
            select(
                ViewerToken.token,
                Project.slug,
                Project.name,
                ModelVersion.version,
                ModelVersion.ifc_file_url,
                ViewerToken.ifc_global_id,
                ViewerToken.expires_at,
            )
            .join(Project, ViewerToken.project_id == Project.id)  # type: ignore[arg-type]
            .join(
                ModelVersion,
                ViewerToken.model_version_id == ModelVersion.id,  # type: ignore[arg-type]
            )
            .where(ViewerToken.token == token)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return TokenView(*row)

    def delete_expired(self, now: datetime) -> int:
        """Delete tokens whose expires_at is before now.

        Idempotent: a second run with the same cutoff finds no matching rows.

        Returns:
            Number of tokens deleted
        """
        stmt = delete(ViewerToken).where(ViewerToken.expires_at < now)  # type: ignore[arg-type]
        result = self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]
