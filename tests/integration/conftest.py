"""Integration test fixtures for the HTTP API.

The ASGI transport does not run the lifespan, so the storage dependency is
overridden with the parametrized `storage` fixture from tests/conftest.py.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.qrviewer.api.dependencies import get_storage_engine
from src.qrviewer.main import create_app
from src.qrviewer.storage import StorageEngine


@pytest.fixture
def app(storage: StorageEngine) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_storage_engine] = lambda: storage
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to the app in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
