"""Service layer - business logic over the storage engine."""

from src.qrviewer.services.sweeper import ExpirySweeper
from src.qrviewer.services.token_service import LATEST_VERSION, ResolvedToken, TokenService

__all__ = [
    "LATEST_VERSION",
    "ExpirySweeper",
    "ResolvedToken",
    "TokenService",
]
