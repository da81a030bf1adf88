"""Viewer token endpoints.

Issuance is called by the authoring plugin; resolution is called by the web
viewer when a QR code is scanned. Neither is authenticated: the token itself
is the capability.
"""

from fastapi import APIRouter, HTTPException, Request, status

from src.qrviewer.api.dependencies import SettingsDep, TokenServiceDep
from src.qrviewer.core.rate_limit import limiter, token_create_limit
from src.qrviewer.schemas import TokenCreate, TokenCreateResponse, TokenRead

router = APIRouter(prefix="/tokens", tags=["tokens"])

TOKEN_NOT_FOUND = "Token not found or expired"


@router.post(
    "",
    response_model=TokenCreateResponse,
    summary="Issue viewer token",
    description=(
        "Mint a token binding one IFC element to one model version. "
        "Unknown projects are created on first use; model versions must already exist."
    ),
    responses={
        200: {"description": "Token issued"},
        400: {"description": "Missing or invalid fields"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Model version not found, or storage failure"},
    },
)
@limiter.limit(token_create_limit)
def create_token(
    request: Request,
    token_data: TokenCreate,
    service: TokenServiceDep,
    settings: SettingsDep,
) -> TokenCreateResponse:
    """Issue a viewer token and return the URL to encode in the QR code."""
    try:
        token = service.issue(
            token_data.project_slug,
            token_data.ifc_global_id,
            model_version=token_data.resolved_model_version,
            expiry_days=token_data.resolved_expiry_days,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    return TokenCreateResponse(
        viewer_url=f"{settings.viewer_base_url}/view/{token}",
        token=token,
    )


@router.get(
    "/{token}",
    response_model=TokenRead,
    summary="Resolve viewer token",
    description="Resolve a live token to the model file URL and element to highlight.",
    responses={
        200: {"description": "Token is live"},
        404: {"description": TOKEN_NOT_FOUND},
    },
)
def resolve_token(token: str, service: TokenServiceDep) -> TokenRead:
    """Resolve a token. Missing and expired tokens are indistinguishable."""
    resolved = service.resolve(token)
    if resolved is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=TOKEN_NOT_FOUND)
    return TokenRead.model_validate(resolved)
