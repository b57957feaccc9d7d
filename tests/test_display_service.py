"""
Tests for the display service orchestration
"""

import threading
import time

import pytest

from signage.events import ChangeEvent
from signage.exceptions import NotFoundError

GRID = {"column_start": 1, "row_start": 1, "column_end": 3, "row_end": 2}


@pytest.fixture
def display(service):
    return service.create_display("Lobby", True, "lobby-01", location="Ground floor")


def test_create_display_publishes_event(service, event_sink):
    display = service.create_display("Lobby", True, "lobby-01")

    assert display.id is not None
    assert display.description == ""
    assert event_sink.events == [(ChangeEvent.DISPLAY_CREATED, display)]


def test_update_display_publishes_full_record(service, event_sink, display):
    updated = service.update_display(display.id, "Foyer", False, "lobby-01", "", "East")

    assert updated.name == "Foyer"
    assert updated.active is False
    assert event_sink.events[-1] == (ChangeEvent.DISPLAY_UPDATED, updated)


def test_update_missing_display_raises(service, event_sink):
    with pytest.raises(NotFoundError):
        service.update_display(42, "X", True, "x")

    assert event_sink.events == []


def test_get_display_by_client_id(service, display):
    assert service.get_display_by_client_id("lobby-01") == display
    assert service.get_display_by_client_id("unknown") is None


def test_views_append_to_their_screen_type_group(service, display):
    first = service.create_view("Main", 4, 3, display.id, "landscape")
    second = service.create_view("News", 4, 3, display.id, "landscape")
    portrait = service.create_view("Menu", 2, 6, display.id, "portrait")

    assert (first.position, second.position, portrait.position) == (1, 2, 1)
    assert first.content_slots == []


def test_create_view_for_unknown_display(service):
    with pytest.raises(NotFoundError):
        service.create_view("Main", 4, 3, 404, "landscape")


def test_update_view_keeps_display_position_and_screen_type(service, display, event_sink):
    service.create_view("Main", 4, 3, display.id, "landscape")
    view = service.create_view("News", 4, 3, display.id, "landscape")

    updated = service.update_view(view.id, "Headlines", 6, 4)

    assert (updated.name, updated.columns, updated.rows) == ("Headlines", 6, 4)
    assert updated.display_id == display.id
    assert updated.position == 2
    assert updated.screen_type == "landscape"
    assert event_sink.events[-1] == (ChangeEvent.VIEWS_UPDATED, display)


def test_update_view_reconciles_content_slots(service, display):
    view = service.create_view("Main", 4, 3, display.id, "landscape")

    updated = service.update_view(
        view.id,
        "Main",
        4,
        3,
        [{"component_type": "clock", **GRID, "options": {"format": "24h"}}],
    )

    assert len(updated.content_slots) == 1
    assert updated.content_slots[0].component_type == "clock"
    assert updated.content_slots[0].options == {"format": "24h"}


def test_update_view_succeeds_when_display_lookup_fails(
    service, display, repositories, event_sink
):
    """The views notification is best-effort and never fails the update."""
    view = service.create_view("Main", 4, 3, display.id, "landscape")

    def broken_get(display_id):
        raise RuntimeError("display lookup failed")

    repositories["displays"].get = broken_get

    updated = service.update_view(view.id, "Renamed", 4, 3)

    assert updated.name == "Renamed"
    assert all(e[0] != ChangeEvent.VIEWS_UPDATED for e in event_sink.events)


def test_update_view_succeeds_when_publish_fails(service, display, event_sink):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    event_sink.error = RuntimeError("transport down")

    assert service.update_view(view.id, "Renamed", 4, 3).name == "Renamed"


def test_update_view_propagates_reconcile_errors(service, display, event_sink):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    event_sink.events.clear()

    with pytest.raises(NotFoundError):
        service.update_view(
            view.id, "Main", 4, 3, [{"id": 12345, "component_type": "text", **GRID}]
        )

    assert event_sink.events == []


def test_update_missing_view(service):
    with pytest.raises(NotFoundError):
        service.update_view(77, "Nope", 1, 1)


def test_delete_view_cascades_and_notifies(service, store, display, event_sink):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    slots = service.update_content_slots_for_view(
        view.id, [{"component_type": "text", **GRID, "options": {"body": "Hi"}}]
    )

    deleted = service.delete_view(view.id)

    assert deleted.id == view.id
    assert deleted.content_slots == slots
    assert store.views == {}
    assert store.slots == {}
    assert store.options == {}
    assert event_sink.events[-1] == (ChangeEvent.VIEWS_UPDATED, display)
    mutations = store.mutations()
    slot_id = slots[0].id
    assert mutations.index(("options", "delete_all", slot_id)) < mutations.index(
        ("slots", "delete", slot_id)
    ) < mutations.index(("views", "delete", view.id))


def test_delete_view_swallows_notification_failure(service, display, event_sink):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    event_sink.error = RuntimeError("transport down")

    assert service.delete_view(view.id).id == view.id


def test_delete_missing_view_returns_none(service):
    assert service.delete_view(5) is None


def test_delete_display_removes_everything(service, store, display, event_sink):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    service.update_content_slots_for_view(
        view.id, [{"component_type": "text", **GRID, "options": {"body": "Hi"}}]
    )

    deleted = service.delete_display(display.id)

    assert deleted == display
    assert store.displays == store.views == store.slots == store.options == {}
    assert event_sink.events[-1] == (ChangeEvent.DISPLAY_DELETED, display)


def test_delete_missing_display(service, event_sink):
    assert service.delete_display(9) is None
    assert event_sink.events == []


def test_update_content_slots_for_unknown_view(service):
    with pytest.raises(NotFoundError):
        service.update_content_slots_for_view(3, [])


def test_update_content_slots_returns_persisted_slots(service, display):
    view = service.create_view("Main", 4, 3, display.id, "landscape")

    slots = service.update_content_slots_for_view(
        view.id,
        [
            {"component_type": "clock", **GRID},
            {"component_type": "image", **GRID, "options": {"src": "logo.png"}},
        ],
    )

    assert [s.component_type for s in slots] == ["clock", "image"]
    assert [s.options for s in slots] == [{}, {"src": "logo.png"}]
    assert service.get_view(view.id).content_slots == slots


def test_set_options_for_content_slot(service, display):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    [slot] = service.update_content_slots_for_view(
        view.id, [{"component_type": "text", **GRID, "options": {"a": "1", "b": "2"}}]
    )

    result = service.set_options_for_content_slot(slot.id, {"b": "3", "c": "4"})

    assert result == {"b": "3", "c": "4"}
    assert service.get_options_for_content_slot(slot.id) == {"b": "3", "c": "4"}


def test_set_options_for_missing_slot(service):
    with pytest.raises(NotFoundError):
        service.set_options_for_content_slot(8, {"a": 1})


def test_lookups_across_views(service, display):
    other = service.create_display("Cafe", True, "cafe-01")
    v1 = service.create_view("Main", 4, 3, display.id, "landscape")
    v2 = service.create_view("Menu", 4, 3, other.id, "portrait")
    service.update_content_slots_for_view(v1.id, [{"component_type": "clock", **GRID}])
    service.update_content_slots_for_view(v2.id, [{"component_type": "clock", **GRID}])

    clocks = service.get_content_slots_for_component_type("clock")
    displays = service.get_displays_for_views([v1.id, v2.id])

    assert {s.view_id for s in clocks} == {v1.id, v2.id}
    assert [d.id for d in displays] == [display.id, other.id]
    assert [v.id for v in service.get_views_for_display(display.id)] == [v1.id]


def test_reconciliations_of_one_view_do_not_interleave(service, store, display):
    view = service.create_view("Main", 4, 3, display.id, "landscape")
    barrier = threading.Barrier(2)
    writers = []
    errors = []
    record = store.record

    def record_writer(*call):
        record(*call)
        if not call[1].startswith(("get", "list")):
            writers.append(threading.current_thread().name)
            # Give the other thread a chance to run mid-reconciliation
            time.sleep(0.001)

    store.record = record_writer

    def submit(component_type):
        barrier.wait()
        try:
            service.update_content_slots_for_view(
                view.id, [{"component_type": component_type, **GRID}] * 5
            )
        except Exception as e:
            errors.append(e)

    threads = [
        threading.Thread(target=submit, args=(kind,), name=kind)
        for kind in ("clock", "text")
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert errors == []
    # Each thread's writes form one uninterrupted run
    runs = [name for i, name in enumerate(writers) if i == 0 or writers[i - 1] != name]
    assert sorted(runs) == ["clock", "text"]
    assert len(service.get_content_slots_for_view(view.id)) == 5


def test_deleted_views_release_their_lock(service, display):
    kept = service.create_view("Main", 4, 3, display.id, "landscape")
    dropped = service.create_view("News", 4, 3, display.id, "landscape")
    service.update_content_slots_for_view(kept.id, [])
    service.update_content_slots_for_view(dropped.id, [])

    service.delete_view(dropped.id)

    assert dropped.id not in service.view_locks
    assert kept.id in service.view_locks

    service.delete_display(display.id)

    assert len(service.view_locks) == 0
