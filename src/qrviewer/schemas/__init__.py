from src.qrviewer.schemas.token import HealthRead, TokenCreate, TokenCreateResponse, TokenRead

__all__ = [
    "HealthRead",
    "TokenCreate",
    "TokenCreateResponse",
    "TokenRead",
]
