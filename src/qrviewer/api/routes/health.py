from fastapi import APIRouter

from src.qrviewer.models import utc_now
from src.qrviewer.schemas import HealthRead

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthRead, summary="Liveness check")
def health() -> HealthRead:
    """Liveness only. Does not touch storage."""
    return HealthRead(status="ok", timestamp=utc_now().isoformat() + "Z")
