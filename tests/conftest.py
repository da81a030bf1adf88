"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
HTTP client fixtures are in tests/integration/conftest.py.
"""

import os

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
# The background sweeper is exercised directly, never through the lifespan
os.environ.setdefault("SWEEP_ENABLED", "false")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import Iterator
from pathlib import Path

import pytest

from src.qrviewer.core.config import get_settings
from src.qrviewer.services import TokenService
from src.qrviewer.storage import StorageEngine
from tests.helpers import BACKENDS, FakeClock, make_storage

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    """Clock frozen at BASE_TIME; advance it explicitly."""
    return FakeClock()


@pytest.fixture(params=BACKENDS)
def storage(
    request: pytest.FixtureRequest, tmp_path: Path, clock: FakeClock
) -> Iterator[StorageEngine]:
    """Empty storage engine, once per backend, backed by files in tmp_path."""
    engine = make_storage(request.param, tmp_path, clock)
    yield engine
    engine.close()


@pytest.fixture
def service(storage: StorageEngine, clock: FakeClock) -> TokenService:
    """Token service sharing the storage engine's clock."""
    return TokenService(storage, clock=clock)
