"""
Live connections of display clients.

Tracks which display client is connected on which websocket, and which
clients are connected but not (yet) authenticated because their display is
unknown or inactive. Subscribed to the application's event broker, it pushes
change events to the affected display.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Set

from fastapi import WebSocket

from signage.events import ChangeEvent
from signage.models import Display, LiveMessage, LiveMessageType

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Presence map of live display clients keyed by client identifier."""

    def __init__(self) -> None:
        self.sockets: Dict[str, WebSocket] = {}
        self.pending_client_ids: Set[str] = set()
        self._tasks: Set["asyncio.Task[None]"] = set()

    async def connect(
        self, websocket: WebSocket, client_id: str, display: Optional[Display]
    ) -> bool:
        """
        Register an accepted websocket for ``client_id``.

        Returns:
            True if the display is known and active, False if the client was
            registered as pending.
        """
        self.sockets[client_id] = websocket

        if display is None or not display.active:
            logger.warning(f"Could not find an active display for client {client_id}")
            self.pending_client_ids.add(client_id)
            await websocket.send_json(
                _message(LiveMessageType.AUTH_ERROR, {"message": "Display not active"})
            )
            return False

        self.pending_client_ids.discard(client_id)
        await websocket.send_json(_message(LiveMessageType.AUTH_SUCCESS))
        logger.info(f"Display {display.id} connected as client {client_id}")
        return True

    def disconnect(self, client_id: str, websocket: Optional[WebSocket] = None) -> None:
        # A newer connection for the same client may have replaced this one
        if websocket is not None and self.sockets.get(client_id) is not websocket:
            return
        self.sockets.pop(client_id, None)
        self.pending_client_ids.discard(client_id)
        logger.debug(f"Client {client_id} disconnected")

    def is_display_pending(self, client_id: str) -> bool:
        """True if the client is connected but its display is not authenticated."""
        return client_id in self.pending_client_ids

    def is_connected(self, client_id: str) -> bool:
        return client_id in self.sockets

    def handle_event(self, event: ChangeEvent, payload: Any) -> None:
        """Event broker subscriber: push ``event`` to the display it concerns."""
        if not isinstance(payload, Display):
            logger.warning(f"Ignoring {event.value} with unexpected payload")
            return

        client_id = payload.client_id
        websocket = self.sockets.get(client_id)
        if websocket is None:
            return

        messages: List[Dict[str, Any]] = []
        if event == ChangeEvent.DISPLAY_UPDATED:
            if payload.active and client_id in self.pending_client_ids:
                self.pending_client_ids.discard(client_id)
                messages.append(_message(LiveMessageType.AUTH_SUCCESS))
            elif not payload.active and client_id not in self.pending_client_ids:
                self.pending_client_ids.add(client_id)
                messages.append(
                    _message(LiveMessageType.AUTH_ERROR, {"message": "Display not active"})
                )
        elif event == ChangeEvent.DISPLAY_DELETED:
            self.pending_client_ids.add(client_id)

        messages.append(_message(event.value, payload.model_dump()))
        self._schedule(client_id, websocket, messages)

    def _schedule(
        self, client_id: str, websocket: WebSocket, messages: List[Dict[str, Any]]
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, dropping push to client {client_id}")
            return

        task = loop.create_task(self._send(client_id, websocket, messages))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(
        self, client_id: str, websocket: WebSocket, messages: List[Dict[str, Any]]
    ) -> None:
        for message in messages:
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.warning(f"Push to client {client_id} failed: {e}")
                return

    async def drain(self) -> None:
        """Wait for scheduled pushes to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def _message(event: Any, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    event_name = event.value if hasattr(event, "value") else str(event)
    return LiveMessage(event=event_name, data=data or {}).model_dump(mode="json")
