from fastapi import APIRouter

from src.qrviewer.api.routes import health, tokens

api_router = APIRouter(prefix="/api")
api_router.include_router(tokens.router)
api_router.include_router(health.router)
