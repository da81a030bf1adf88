"""FastAPI dependencies for the storage engine and token service."""

from typing import Annotated

from fastapi import Depends

from src.qrviewer.core.config import Settings, get_settings
from src.qrviewer.services import TokenService
from src.qrviewer.storage import StorageEngine, get_storage


def get_storage_engine() -> StorageEngine:
    """Get the process-wide storage engine. Overridden in tests."""
    return get_storage()


StorageDep = Annotated[StorageEngine, Depends(get_storage_engine)]


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_token_service(storage: StorageDep, settings: SettingsDep) -> TokenService:
    """Get token service."""
    return TokenService(storage, max_expiry_days=settings.max_expiry_days)


TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
