"""
Authentication routes for live display clients.

A display exchanges its client identifier for an access token, which it then
presents when opening the live-update websocket.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from signage.auth import create_access_token, get_token_expiry_seconds
from signage.dependencies import get_display_service
from signage.display_service import DisplayService
from signage.models import DisplayTokenRequest, DisplayTokenResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


@router.post("/displays/token", response_model=DisplayTokenResponse)
async def get_display_token(
    request: DisplayTokenRequest,
    service: DisplayService = Depends(get_display_service),
) -> DisplayTokenResponse:
    """
    Issue an access token for a display client.

    Inactive displays still receive a token; their live connection is held
    as pending until the display is activated.
    """
    display = service.get_display_by_client_id(request.client_id)
    if display is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No display with client_id '{request.client_id}'",
        )

    logger.info(f"Issuing access token for display {display.id}")
    return DisplayTokenResponse(
        access_token=create_access_token(display.client_id),
        expires_in=get_token_expiry_seconds(),
    )
