"""Viewer token model - the only high-churn entity."""

from dataclasses import dataclass
from datetime import datetime

from sqlmodel import Field, SQLModel

from src.qrviewer.models.base import utc_now

MAX_TOKEN_LENGTH = 128
MAX_GLOBAL_ID_LENGTH = 255


class ViewerToken(SQLModel, table=True):
    """Capability binding one model element to one model version until expires_at.

    Never updated after creation; physically removed only by the expiry sweep.
    """

    __tablename__ = "viewer_tokens"

    token: str = Field(primary_key=True, max_length=MAX_TOKEN_LENGTH)
    project_id: int = Field(foreign_key="projects.id", index=True)
    model_version_id: int = Field(foreign_key="model_versions.id", index=True)
    ifc_global_id: str = Field(max_length=MAX_GLOBAL_ID_LENGTH)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)


@dataclass(frozen=True, slots=True)
class TokenView:
    """Denormalized token row joined with its project and model version."""

    token: str
    project_slug: str
    project_name: str
    model_version: str
    ifc_file_url: str
    ifc_global_id: str
    expires_at: datetime

    def is_live(self, now: datetime) -> bool:
        """A token is live only while expires_at is strictly in the future."""
        return self.expires_at > now
