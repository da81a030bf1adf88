"""Storage engine construction and the process-wide singleton."""

from src.qrviewer.core.config import Settings, get_settings
from src.qrviewer.core.db import create_db_engine
from src.qrviewer.core.logging import get_logger
from src.qrviewer.core.migrations import run_migrations_sync
from src.qrviewer.storage.base import StorageEngine
from src.qrviewer.storage.snapshot import SnapshotStorageEngine
from src.qrviewer.storage.sql import SQLStorageEngine

logger = get_logger(__name__)

_storage: StorageEngine | None = None


def create_storage(settings: Settings | None = None) -> StorageEngine:
    """Build the storage engine selected by settings.storage_backend.

    One backend per deployment: the two backends use different flush
    disciplines and must not share a dataset.
    """
    settings = settings or get_settings()

    if settings.storage_backend == "snapshot":
        logger.info("Using snapshot storage backend", path=settings.snapshot_path)
        return SnapshotStorageEngine(settings.snapshot_path)

    if settings.auto_migrate:
        logger.info("Running database migrations")
        run_migrations_sync(settings.database_url)
    logger.info("Using SQL storage backend")
    return SQLStorageEngine(create_db_engine(settings.database_url))


def get_storage() -> StorageEngine:
    """Get or create the storage engine singleton."""
    global _storage
    if _storage is None:
        _storage = create_storage()
    return _storage


def dispose_storage() -> None:
    """Close the storage engine. Call during shutdown."""
    global _storage
    if _storage is not None:
        _storage.close()
        _storage = None
