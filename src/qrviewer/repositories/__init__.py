"""Repository layer - data access for the SQL storage backend."""

from src.qrviewer.repositories.base import BaseRepository
from src.qrviewer.repositories.project import ModelVersionRepository, ProjectRepository
from src.qrviewer.repositories.token import ViewerTokenRepository

__all__ = [
    "BaseRepository",
    "ModelVersionRepository",
    "ProjectRepository",
    "ViewerTokenRepository",
]
