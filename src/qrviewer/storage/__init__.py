"""Storage engine - one contract, two interchangeable backends."""

from src.qrviewer.storage.base import Clock, StorageEngine
from src.qrviewer.storage.factory import create_storage, dispose_storage, get_storage
from src.qrviewer.storage.snapshot import SnapshotStorageEngine
from src.qrviewer.storage.sql import SQLStorageEngine

__all__ = [
    "Clock",
    "SQLStorageEngine",
    "SnapshotStorageEngine",
    "StorageEngine",
    "create_storage",
    "dispose_storage",
    "get_storage",
]
