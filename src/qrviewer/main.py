import secrets
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.qrviewer.api.middlewares import logging_context_middleware
from src.qrviewer.api.router import api_router
from src.qrviewer.core.config import get_settings
from src.qrviewer.core.exceptions import setup_exception_handlers
from src.qrviewer.core.logging import get_logger, setup_logging
from src.qrviewer.core.rate_limit import limiter
from src.qrviewer.services import ExpirySweeper, TokenService
from src.qrviewer.storage import dispose_storage, get_storage

logger = get_logger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}", storage_backend=settings.storage_backend)

    storage = get_storage()

    sweeper: ExpirySweeper | None = None
    if settings.sweep_enabled:
        sweeper = ExpirySweeper(TokenService(storage), settings.sweep_interval_seconds)
        sweeper.start()
    app.state.sweeper = sweeper

    logger.info("Viewer base URL configured", viewer_base_url=settings.viewer_base_url)

    yield

    logger.info("Shutdown initiated")
    if sweeper is not None:
        await sweeper.stop()
    dispose_storage()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "tokens", "description": "Viewer token issuance and resolution"},
    {"name": "health", "description": "Liveness"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Issues and resolves QR viewer tokens for IFC building models",
        version=API_VERSION,
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # Add correlation ID middleware first (outermost middleware)
    app.add_middleware(CorrelationIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.middleware("http")(logging_context_middleware)

    app.include_router(api_router)

    # Prometheus metrics instrumentation
    instrumentator = Instrumentator().instrument(app)

    # Protect /metrics endpoint if API key is configured
    if settings.metrics_api_key:
        api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

        async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
            if (
                api_key is None
                or settings.metrics_api_key is None
                or not secrets.compare_digest(api_key, settings.metrics_api_key)
            ):
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Invalid or missing metrics API key",
                )

        instrumentator.expose(app, endpoint="/metrics", dependencies=[Depends(verify_metrics_key)])
    else:
        instrumentator.expose(app, endpoint="/metrics")

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        return {
            "name": settings.app_name,
            "version": API_VERSION,
            "endpoints": {
                "health": "/api/health",
                "createToken": "POST /api/tokens",
                "resolveToken": "GET /api/tokens/{token}",
            },
        }

    return app


app = create_app()
