"""Rate limiting for token issuance.

Token creation is reachable by any client that can reach the API, so it is
limited per client IP. Storage is in-memory (per-process).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.qrviewer.core.config import get_settings
from src.qrviewer.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Generate rate limit key from client IP only.

    Never include user-controlled headers or body fields in the key: rotating
    them would create unlimited new buckets.
    """
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    """Create the rate limiter. Disabled in testing environment."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    return Limiter(key_func=get_rate_limit_key)


def token_create_limit() -> str:
    """Limit string for POST /api/tokens, read lazily so tests can override settings."""
    return get_settings().token_create_rate_limit


# Note: This reads settings at import time. For dynamic reconfiguration,
# the app would need to be restarted.
limiter = create_limiter()
