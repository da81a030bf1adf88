from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "QR IFC Viewer API"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000

    # Storage
    storage_backend: Literal["sql", "snapshot"] = "sql"
    database_url: str = "sqlite:///./data/qr-ifc-viewer.db"
    database_pool_size: int = 5
    database_max_overflow: int = 10
    snapshot_path: str = "./data/qr-ifc-viewer.json"
    auto_migrate: bool = True  # Run `alembic upgrade head` on startup (sql backend)

    # Viewer
    viewer_base_url: str = "http://localhost:3000"

    # Tokens
    default_expiry_days: int = 90
    max_expiry_days: int = 3650

    # Expiry sweep (in-process background task)
    sweep_enabled: bool = True
    sweep_interval_seconds: int = 3600

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    # Rate limiting (per client IP, POST /api/tokens)
    token_create_rate_limit: str = "60/minute"

    @field_validator("viewer_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("default_expiry_days", "max_expiry_days", "sweep_interval_seconds")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
