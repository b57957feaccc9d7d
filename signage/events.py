"""
Change notifications published by the display service.

The service is handed an ``EventSink`` at construction time. ``EventBroker``
is the in-process implementation the application creates once and shares
with the live-update transport, which subscribes to it.
"""

import logging
from enum import Enum
from typing import Any, Callable, List, Protocol

logger = logging.getLogger(__name__)


class ChangeEvent(str, Enum):
    DISPLAY_CREATED = "display_created"
    DISPLAY_UPDATED = "display_updated"
    DISPLAY_DELETED = "display_deleted"
    VIEWS_UPDATED = "views_updated"


Subscriber = Callable[[ChangeEvent, Any], None]


class EventSink(Protocol):
    def publish(self, event: ChangeEvent, payload: Any) -> None: ...


class EventBroker:
    """
    Fan out published events to subscribers.

    Delivery is at-most-once and synchronous with ``publish``; nothing is
    queued or replayed for subscribers that attach later. A failing
    subscriber is logged and does not affect the others.
    """

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, event: ChangeEvent, payload: Any) -> None:
        logger.debug(f"Publishing {event.value} to {len(self._subscribers)} subscriber(s)")
        for subscriber in list(self._subscribers):
            try:
                subscriber(event, payload)
            except Exception:
                logger.exception(f"Subscriber failed handling {event.value}")
