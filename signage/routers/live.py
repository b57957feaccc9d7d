"""
Live-update websocket for display clients
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from signage.auth import verify_token
from signage.connections import ConnectionManager
from signage.database import get_db
from signage.dependencies import get_connection_manager, get_display_service
from signage.display_service import DisplayService

router = APIRouter(tags=["Live"])
logger = logging.getLogger(__name__)


@router.websocket("/live")
async def live_updates(
    websocket: WebSocket,
    token: Optional[str] = None,
    db: Session = Depends(get_db),
    service: DisplayService = Depends(get_display_service),
    connections: ConnectionManager = Depends(get_connection_manager),
) -> None:
    """
    Receive change events for one display.

    The client passes its access token as the ``token`` query parameter.
    Unknown or inactive displays stay connected as pending and receive
    ``auth_success`` once their display is activated.
    """
    token_data = verify_token(token) if token else None
    if token_data is None:
        logger.warning("Rejecting live connection without a valid token")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    client_id = token_data.subject_id
    display = service.get_display_by_client_id(client_id)
    # The socket may stay open for hours; do not pin a pooled connection
    db.close()

    await websocket.accept()
    await connections.connect(websocket, client_id, display)

    try:
        while True:
            # Clients do not send commands; reading detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect as e:
        logger.debug(f"Client {client_id} disconnected with code {e.code}")
    finally:
        connections.disconnect(client_id, websocket)
