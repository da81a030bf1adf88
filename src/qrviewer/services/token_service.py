"""Viewer token issuance and resolution."""

import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from src.qrviewer.core.exceptions import ConflictError, NotFoundError, StorageError
from src.qrviewer.core.logging import get_logger
from src.qrviewer.core.metrics import TOKEN_RESOLUTIONS, TOKENS_ISSUED
from src.qrviewer.models import ModelVersion, Project, utc_now
from src.qrviewer.storage.base import Clock, StorageEngine

logger = get_logger(__name__)

LATEST_VERSION = "latest"
DEFAULT_EXPIRY_DAYS = 90
MAX_EXPIRY_DAYS = 3650
TOKEN_BYTES = 32  # 256 bits of entropy, 43 URL-safe characters
MAX_TOKEN_ATTEMPTS = 5


@dataclass(frozen=True, slots=True)
class ResolvedToken:
    """What a live token grants access to. Carries no internal identifiers."""

    project_slug: str
    project_name: str
    model_version: str
    ifc_file_url: str
    ifc_global_id: str
    expires_at: datetime


def _require_id(value: int | None, kind: str) -> int:
    if value is None:
        raise StorageError(f"Stored {kind} has no id")
    return value


def generate_token() -> str:
    """Generate a cryptographically random, URL-safe token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


class TokenService:
    """Token lifecycle - issuance, resolution and expiry sweep.

    Owns the token format and the expiry policy; persistence is delegated to
    the storage engine.
    """

    def __init__(
        self,
        storage: StorageEngine,
        clock: Clock = utc_now,
        token_factory: Callable[[], str] = generate_token,
        max_expiry_days: int = MAX_EXPIRY_DAYS,
    ):
        self.storage = storage
        self.clock = clock
        self.token_factory = token_factory
        self.max_expiry_days = max_expiry_days

    def issue(
        self,
        project_slug: str,
        ifc_global_id: str,
        model_version: str = LATEST_VERSION,
        expiry_days: int = DEFAULT_EXPIRY_DAYS,
    ) -> str:
        """Mint a viewer token for one element of one model version.

        Unknown projects are provisioned on first use with the slug as their
        display name. The project stays even if the rest of the issuance fails.
        Model versions are never created here.

        Args:
            project_slug: Slug of the project (created if absent)
            ifc_global_id: GlobalId of the element to highlight
            model_version: Version label, or "latest" for the most recent version
            expiry_days: Validity window in days from now

        Returns:
            The token string

        Raises:
            ValueError: On empty identifiers, or an expiry outside 1..max_expiry_days
            NotFoundError: If the model version does not exist for the project
            StorageError: On persistence failure, or when no unique token could
                be allocated within MAX_TOKEN_ATTEMPTS
        """
        if not project_slug:
            raise ValueError("project_slug is required")
        if not ifc_global_id:
            raise ValueError("ifc_global_id is required")
        if not model_version:
            raise ValueError("model_version must not be empty")
        if expiry_days < 1:
            raise ValueError("expiry_days must be at least 1")
        if expiry_days > self.max_expiry_days:
            raise ValueError(f"expiry_days must not exceed {self.max_expiry_days}")

        try:
            expires_at = self.clock() + timedelta(days=expiry_days)
        except OverflowError as e:
            raise ValueError(f"expiry_days={expiry_days} is out of range") from e

        project = self._get_or_create_project(project_slug)
        project_id = _require_id(project.id, "project")
        version = self._resolve_model_version(project_id, project.slug, model_version)
        version_id = _require_id(version.id, "model version")

        for attempt in range(1, MAX_TOKEN_ATTEMPTS + 1):
            token = self.token_factory()
            try:
                self.storage.create_token(
                    token, project_id, version_id, ifc_global_id, expires_at
                )
            except ConflictError:
                logger.warning("Token collision, regenerating", attempt=attempt)
                continue

            TOKENS_ISSUED.inc()
            logger.info(
                "Viewer token issued",
                project_slug=project.slug,
                model_version=version.version,
                expires_at=expires_at.isoformat(),
            )
            return token

        raise StorageError(
            f"Could not allocate a unique token after {MAX_TOKEN_ATTEMPTS} attempts"
        )

    def resolve(self, token: str) -> ResolvedToken | None:
        """Resolve a token to its element and model, or None if missing or expired.

        Liveness is checked on every call, so an expired row that has not been
        swept yet is indistinguishable from a deleted one.
        """
        view = self.storage.get_token_data(token)
        if view is None:
            TOKEN_RESOLUTIONS.labels(outcome="missing").inc()
            logger.debug("Token not found")
            return None

        if not view.is_live(self.clock()):
            TOKEN_RESOLUTIONS.labels(outcome="expired").inc()
            logger.debug("Token expired", expired_at=view.expires_at.isoformat())
            return None

        TOKEN_RESOLUTIONS.labels(outcome="live").inc()
        return ResolvedToken(
            project_slug=view.project_slug,
            project_name=view.project_name,
            model_version=view.model_version,
            ifc_file_url=view.ifc_file_url,
            ifc_global_id=view.ifc_global_id,
            expires_at=view.expires_at,
        )

    def sweep(self, now: datetime) -> int:
        """Physically delete tokens that expired before now. Background use only."""
        return self.storage.delete_expired_tokens(now)

    def _get_or_create_project(self, slug: str) -> Project:
        project = self.storage.get_project_by_slug(slug)
        if project is not None:
            return project

        try:
            self.storage.create_project(slug, slug)
            logger.info("Project auto-provisioned on first token request", project_slug=slug)
        except ConflictError:
            # Another request provisioned it first
            pass

        project = self.storage.get_project_by_slug(slug)
        if project is None:
            raise StorageError(f"Project '{slug}' missing after creation")
        return project

    def _resolve_model_version(self, project_id: int, slug: str, label: str) -> ModelVersion:
        if label == LATEST_VERSION:
            version = self.storage.get_latest_model_version(project_id)
        else:
            version = self.storage.get_model_version(project_id, label)

        if version is None:
            raise NotFoundError(f"Model version '{label}' not found for project '{slug}'")
        return version
