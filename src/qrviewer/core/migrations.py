"""Reusable migration runner for the API, the CLI and tests."""

from pathlib import Path

from alembic.config import Config

from alembic import command
from src.qrviewer.core.config import get_settings

ALEMBIC_DIR = Path(__file__).resolve().parents[2] / "alembic"


def get_alembic_config(database_url: str | None = None) -> Config:
    """Build an Alembic config without relying on alembic.ini or the working directory."""
    url = database_url or get_settings().database_url
    alembic_cfg = Config()
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_DIR))
    # ConfigParser interpolation: escape percent signs in passwords
    alembic_cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return alembic_cfg


def run_migrations_sync(database_url: str | None = None) -> None:
    """Run Alembic migrations synchronously up to head.

    Args:
        database_url: Database to migrate. Defaults to settings.database_url.
    """
    command.upgrade(get_alembic_config(database_url), "head")
