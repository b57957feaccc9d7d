"""
Shared fixtures: in-memory repositories that record every call, and a
SQLite-backed application for route tests.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("DATABASE_SCHEMA", None)

from typing import Any, Dict, Iterable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from signage.database import get_db, init_db, make_engine
from signage.display_service import DisplayService
from signage.main import create_app
from signage.models import ContentSlot, Display, View


class InMemoryStore:
    """Tables shared by the in-memory repositories, plus a call log."""

    def __init__(self) -> None:
        self.displays: Dict[int, Display] = {}
        self.views: Dict[int, View] = {}
        self.slots: Dict[int, ContentSlot] = {}
        self.options: Dict[int, Dict[str, Any]] = {}
        self.calls: List[Tuple[Any, ...]] = []
        self.fail_on: Optional[Tuple[Any, ...]] = None
        self._next_id = 0

    def next_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def record(self, *call: Any) -> None:
        if self.fail_on is not None and call[: len(self.fail_on)] == self.fail_on:
            raise RuntimeError(f"storage failure on {call}")
        self.calls.append(call)

    def mutations(self) -> List[Tuple[Any, ...]]:
        return [c for c in self.calls if not c[1].startswith(("get", "list"))]


class InMemoryDisplayRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def create(self, name, active, client_id, description="", location=""):
        display_id = self.store.next_id()
        self.store.record("displays", "create", display_id)
        self.store.displays[display_id] = Display(
            id=display_id,
            name=name,
            active=active,
            client_id=client_id,
            description=description,
            location=location,
        )
        return display_id

    def get(self, display_id):
        self.store.record("displays", "get", display_id)
        display = self.store.displays.get(display_id)
        return display.model_copy() if display else None

    def get_by_client_id(self, client_id):
        for display in self.store.displays.values():
            if display.client_id == client_id:
                return display.model_copy()
        return None

    def get_many(self, display_ids: Iterable[int]):
        ids = set(display_ids)
        return [d.model_copy() for i, d in sorted(self.store.displays.items()) if i in ids]

    def list(self):
        return [d.model_copy() for _, d in sorted(self.store.displays.items())]

    def update(self, display_id, name, active, client_id, description, location):
        self.store.record("displays", "update", display_id)
        if display_id not in self.store.displays:
            return None
        self.store.displays[display_id] = Display(
            id=display_id,
            name=name,
            active=active,
            client_id=client_id,
            description=description,
            location=location,
        )
        return display_id

    def delete(self, display_id):
        self.store.record("displays", "delete", display_id)
        return self.store.displays.pop(display_id, None)


class InMemoryViewRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def create(self, name, columns, rows, display_id, position, screen_type):
        view_id = self.store.next_id()
        self.store.record("views", "create", view_id)
        self.store.views[view_id] = View(
            id=view_id,
            name=name,
            columns=columns,
            rows=rows,
            display_id=display_id,
            position=position,
            screen_type=screen_type,
        )
        return view_id

    def get(self, view_id):
        self.store.record("views", "get", view_id)
        view = self.store.views.get(view_id)
        return view.model_copy() if view else None

    def get_many(self, view_ids):
        ids = set(view_ids)
        return [v.model_copy() for i, v in sorted(self.store.views.items()) if i in ids]

    def list_for_display(self, display_id):
        return [
            v.model_copy()
            for _, v in sorted(self.store.views.items())
            if v.display_id == display_id
        ]

    def list_for_display_and_screen_type(self, display_id, screen_type):
        return [
            v
            for v in self.list_for_display(display_id)
            if v.screen_type == screen_type
        ]

    def update(self, view_id, name, columns, rows, display_id, position, screen_type):
        self.store.record("views", "update", view_id)
        if view_id not in self.store.views:
            return None
        self.store.views[view_id] = View(
            id=view_id,
            name=name,
            columns=columns,
            rows=rows,
            display_id=display_id,
            position=position,
            screen_type=screen_type,
        )
        return view_id

    def delete(self, view_id):
        self.store.record("views", "delete", view_id)
        return self.store.views.pop(view_id, None) is not None


class InMemoryContentSlotRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def create(self, component_type, view_id, column_start, row_start, column_end, row_end):
        self.store.record("slots", "create", component_type)
        slot_id = self.store.next_id()
        self.store.slots[slot_id] = ContentSlot(
            id=slot_id,
            component_type=component_type,
            view_id=view_id,
            column_start=column_start,
            row_start=row_start,
            column_end=column_end,
            row_end=row_end,
        )
        return slot_id

    def get(self, slot_id):
        self.store.record("slots", "get", slot_id)
        slot = self.store.slots.get(slot_id)
        return slot.model_copy() if slot else None

    def list_for_view(self, view_id):
        return [
            s.model_copy()
            for _, s in sorted(self.store.slots.items())
            if s.view_id == view_id
        ]

    def list_for_component_type(self, component_type):
        return [
            s.model_copy()
            for _, s in sorted(self.store.slots.items())
            if s.component_type == component_type
        ]

    def update(self, slot_id, component_type, view_id, column_start, row_start, column_end, row_end):
        self.store.record("slots", "update", slot_id)
        if slot_id not in self.store.slots:
            return None
        self.store.slots[slot_id] = ContentSlot(
            id=slot_id,
            component_type=component_type,
            view_id=view_id,
            column_start=column_start,
            row_start=row_start,
            column_end=column_end,
            row_end=row_end,
        )
        return slot_id

    def delete(self, slot_id):
        self.store.record("slots", "delete", slot_id)
        return self.store.slots.pop(slot_id, None) is not None


class InMemoryContentSlotOptionRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def get_all_for_slot(self, slot_id):
        return dict(self.store.options.get(slot_id, {}))

    def create(self, slot_id, key, value):
        self.store.record("options", "create", slot_id, key, value)
        options = self.store.options.setdefault(slot_id, {})
        assert key not in options, f"duplicate option {key!r}"
        options[key] = value

    def update(self, slot_id, key, value):
        self.store.record("options", "update", slot_id, key, value)
        options = self.store.options.get(slot_id, {})
        if key not in options:
            return False
        options[key] = value
        return True

    def delete(self, slot_id, key):
        self.store.record("options", "delete", slot_id, key)
        return self.store.options.get(slot_id, {}).pop(key, None) is not None

    def delete_all_for_slot(self, slot_id):
        self.store.record("options", "delete_all", slot_id)
        return len(self.store.options.pop(slot_id, {}))


class RecordingUnitOfWork:
    """Unit of work without a transaction; counts checkpoints and outcomes."""

    atomic = False

    def __init__(self) -> None:
        self.checkpoints = 0
        self.commits = 0
        self.rollbacks = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()

    def checkpoint(self):
        self.checkpoints += 1

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class RecordingEventSink:
    def __init__(self) -> None:
        self.events: List[Tuple[Any, Any]] = []
        self.error: Optional[Exception] = None

    def publish(self, event, payload):
        if self.error is not None:
            raise self.error
        self.events.append((event, payload))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def unit_of_work() -> RecordingUnitOfWork:
    return RecordingUnitOfWork()


@pytest.fixture
def repositories(store):
    return {
        "displays": InMemoryDisplayRepository(store),
        "views": InMemoryViewRepository(store),
        "content_slots": InMemoryContentSlotRepository(store),
        "options": InMemoryContentSlotOptionRepository(store),
    }


@pytest.fixture
def service(repositories, event_sink, unit_of_work) -> DisplayService:
    return DisplayService(
        events=event_sink,
        unit_of_work=unit_of_work,
        **repositories,
    )


@pytest.fixture
def engine():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    yield db
    db.close()


@pytest.fixture
def app(session_factory):
    app = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
