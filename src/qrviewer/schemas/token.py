"""Token schemas for API request/response.

Field names are camelCase on the wire, matching the viewer and plugin clients.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from src.qrviewer.core.config import get_settings
from src.qrviewer.models.project import MAX_SLUG_LENGTH, MAX_VERSION_LENGTH
from src.qrviewer.models.token import MAX_GLOBAL_ID_LENGTH
from src.qrviewer.services.token_service import LATEST_VERSION


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _as_utc(value: datetime) -> datetime:
    """Stored datetimes are naive UTC; attach the zone for serialization."""
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class TokenCreate(CamelModel):
    """Schema for requesting a viewer token."""

    project_slug: str = Field(
        min_length=1,
        max_length=MAX_SLUG_LENGTH,
        json_schema_extra={"examples": ["sample-office-building"]},
    )
    ifc_global_id: str = Field(
        min_length=1,
        max_length=MAX_GLOBAL_ID_LENGTH,
        json_schema_extra={"examples": ["2N6fP$0vX5kNm_g2XqWcCp"]},
    )
    model_version: str | None = Field(default=None, max_length=MAX_VERSION_LENGTH)
    expiry_days: int | None = Field(default=None, ge=1)

    @field_validator("project_slug", "ifc_global_id")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty or whitespace only")
        return v

    @field_validator("model_version")
    @classmethod
    def validate_model_version(cls, v: str | None) -> str | None:
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v

    @field_validator("expiry_days")
    @classmethod
    def validate_expiry_days(cls, v: int | None) -> int | None:
        max_days = get_settings().max_expiry_days
        if v is not None and v > max_days:
            raise ValueError(f"expiryDays must not exceed {max_days}")
        return v

    @property
    def resolved_model_version(self) -> str:
        return self.model_version or LATEST_VERSION

    @property
    def resolved_expiry_days(self) -> int:
        return self.expiry_days or get_settings().default_expiry_days


class TokenCreateResponse(CamelModel):
    """Schema returned after a token is issued."""

    viewer_url: str
    token: str


class TokenRead(CamelModel):
    """Schema for a resolved, live token."""

    project_slug: str
    project_name: str
    model_version: str
    ifc_file_url: str
    ifc_global_id: str
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("expires_at")
    def serialize_expires_at(self, value: datetime) -> str:
        return _as_utc(value).isoformat().replace("+00:00", "Z")


class HealthRead(BaseModel):
    status: str = "ok"
    timestamp: str
