"""Test helper functions for common data creation patterns."""

from datetime import datetime, timedelta
from pathlib import Path

from src.qrviewer.core.db import create_db_engine
from src.qrviewer.storage import SnapshotStorageEngine, SQLStorageEngine, StorageEngine

BACKENDS = ["sql", "snapshot"]

# Fixed instant used as "now" throughout the tests (naive UTC)
BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)

SAMPLE_IFC_URL = "https://github.com/IFCjs/test-ifc-files/raw/main/Duplex_A_20110505.ifc"
SAMPLE_GLOBAL_ID = "2N6fP$0vX5kNm_g2XqWcCp"


class FakeClock:
    """Manually advanced clock, callable like utc_now()."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


def make_storage(backend: str, directory: Path, clock: FakeClock) -> StorageEngine:
    """Create an empty storage engine of the given backend inside directory."""
    if backend == "sql":
        storage = SQLStorageEngine(
            create_db_engine(f"sqlite:///{directory / 'test.db'}"), clock=clock
        )
        storage.create_schema()
        return storage
    return SnapshotStorageEngine(directory / "snapshot.json", clock=clock)


def create_project_with_version(
    storage: StorageEngine,
    slug: str = "sample-office-building",
    name: str = "Sample Office Building",
    version: str = "v1.0",
    ifc_file_url: str = SAMPLE_IFC_URL,
) -> tuple[int, int]:
    """Create a project and one model version.

    Returns:
        (project_id, model_version_id)
    """
    project_id = storage.create_project(slug, name)
    version_id = storage.create_model_version(project_id, version, ifc_file_url)
    return project_id, version_id
