"""
FastAPI dependencies wiring request sessions to the display service
"""

import os

from fastapi import Depends
from fastapi.requests import HTTPConnection
from sqlalchemy.orm import Session

from signage.connections import ConnectionManager
from signage.database import get_db
from signage.display_service import DisplayService
from signage.events import EventBroker
from signage.repositories import (
    SQLAlchemyContentSlotOptionRepository,
    SQLAlchemyContentSlotRepository,
    SQLAlchemyDisplayRepository,
    SQLAlchemyViewRepository,
)
from signage.unit_of_work import KeyedLock, SQLAlchemyUnitOfWork


def reconcile_atomic() -> bool:
    """Whether commands commit once at the end instead of after every step."""
    return os.getenv("RECONCILE_ATOMIC", "false").lower() == "true"


def get_event_broker(connection: HTTPConnection) -> EventBroker:
    return connection.app.state.events


def get_view_locks(connection: HTTPConnection) -> KeyedLock:
    return connection.app.state.view_locks


def get_display_service(
    db: Session = Depends(get_db),
    events: EventBroker = Depends(get_event_broker),
    view_locks: KeyedLock = Depends(get_view_locks),
) -> DisplayService:
    """
    Build a display service bound to the request's database session.

    The event broker and the view lock registry are application-wide and
    shared by every request.
    """
    return DisplayService(
        displays=SQLAlchemyDisplayRepository(db),
        views=SQLAlchemyViewRepository(db),
        content_slots=SQLAlchemyContentSlotRepository(db),
        options=SQLAlchemyContentSlotOptionRepository(db),
        events=events,
        unit_of_work=SQLAlchemyUnitOfWork(db, atomic=reconcile_atomic()),
        view_locks=view_locks,
    )


def get_connection_manager(connection: HTTPConnection) -> ConnectionManager:
    return connection.app.state.connections
