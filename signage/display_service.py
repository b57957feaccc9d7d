"""
Display Service - displays, their views and the content slots of each view.

This module handles:
- Display CRUD, publishing a change event for every mutation
- Appending views to a screen-type group and updating/deleting them
- Reconciling the content slots (and slot options) of a view
- Best-effort "views updated" notifications for live displays
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from signage.events import ChangeEvent, EventSink
from signage.exceptions import NotFoundError, ensure_found
from signage.models import ContentSlot, Display, OptionMap, View
from signage.reconciler import (
    ContentSlotReconciler,
    OptionSetReconciler,
    SlotDescriptorInput,
)
from signage.repositories import (
    ContentSlotOptionRepository,
    ContentSlotRepository,
    DisplayRepository,
    ViewRepository,
)
from signage.unit_of_work import KeyedLock, UnitOfWork

logger = logging.getLogger(__name__)


class DisplayService:
    """Facade over the repositories used by the HTTP routers."""

    def __init__(
        self,
        displays: DisplayRepository,
        views: ViewRepository,
        content_slots: ContentSlotRepository,
        options: ContentSlotOptionRepository,
        events: EventSink,
        unit_of_work: UnitOfWork,
        view_locks: Optional[KeyedLock] = None,
    ):
        """
        Initialize the display service.

        Args:
            displays: Display persistence.
            views: View persistence.
            content_slots: Content slot persistence.
            options: Content slot option persistence.
            events: Sink receiving change notifications.
            unit_of_work: Transaction boundary wrapping each command.
            view_locks: Registry serializing work on the same view. Share one
                registry between services to serialize across requests.
        """
        self.displays = displays
        self.views = views
        self.content_slots = content_slots
        self.options = options
        self.events = events
        self.unit_of_work = unit_of_work
        self.view_locks = view_locks or KeyedLock()

        self.option_reconciler = OptionSetReconciler(options, unit_of_work)
        self.slot_reconciler = ContentSlotReconciler(
            content_slots, options, unit_of_work, self.option_reconciler
        )

    # ============================================================
    # Displays
    # ============================================================

    def create_display(
        self,
        name: str,
        active: bool,
        client_id: str,
        description: str = "",
        location: str = "",
    ) -> Display:
        with self.unit_of_work:
            display_id = self.displays.create(
                name, active, client_id, description, location
            )
        display = self.get_display(display_id)
        self.events.publish(ChangeEvent.DISPLAY_CREATED, display)
        return display

    def list_displays(self) -> List[Display]:
        return self.displays.list()

    def get_display(self, display_id: int) -> Display:
        return ensure_found(
            self.displays.get(display_id), entity="Display", identifier=display_id
        )

    def get_display_by_client_id(self, client_id: str) -> Optional[Display]:
        return self.displays.get_by_client_id(client_id)

    def get_displays_for_views(self, view_ids: Iterable[int]) -> List[Display]:
        views = self.views.get_many(view_ids)
        return self.displays.get_many({view.display_id for view in views})

    def update_display(
        self,
        display_id: int,
        name: str,
        active: bool,
        client_id: str,
        description: str = "",
        location: str = "",
    ) -> Display:
        with self.unit_of_work:
            updated_id = self.displays.update(
                display_id, name, active, client_id, description, location
            )
        if updated_id is None:
            raise NotFoundError("Display", display_id)

        display = self.get_display(updated_id)
        self.events.publish(ChangeEvent.DISPLAY_UPDATED, display)
        return display

    def delete_display(self, display_id: int) -> Optional[Display]:
        """
        Delete a display together with its views, their slots and options.

        Returns:
            The deleted display, or None if there was nothing to delete.
        """
        with self.unit_of_work:
            for view in self.views.list_for_display(display_id):
                with self.view_locks.hold(view.id):
                    self._delete_view_tree(view.id)
            deleted = self.displays.delete(display_id)

        if deleted:
            self.events.publish(ChangeEvent.DISPLAY_DELETED, deleted)
        return deleted

    # ============================================================
    # Views
    # ============================================================

    def create_view(
        self,
        name: str,
        columns: int,
        rows: int,
        display_id: int,
        screen_type: str,
    ) -> View:
        """
        Create a view and append it as the last view of its screen type.

        The position is the current size of the (display, screen type) group
        plus one. Counting and inserting are two separate steps.
        """
        self.get_display(display_id)
        with self.unit_of_work:
            siblings = self.views.list_for_display_and_screen_type(
                display_id, screen_type
            )
            view_id = self.views.create(
                name, columns, rows, display_id, len(siblings) + 1, screen_type
            )
        return self.get_view(view_id)

    def get_view(self, view_id: int) -> View:
        """Return a view with its content slots and their options."""
        view = ensure_found(self.views.get(view_id), entity="View", identifier=view_id)
        return view.model_copy(
            update={"content_slots": self.get_content_slots_for_view(view_id)}
        )

    def get_views_for_display(self, display_id: int) -> List[View]:
        self.get_display(display_id)
        return [
            view.model_copy(
                update={"content_slots": self.get_content_slots_for_view(view.id)}
            )
            for view in self.views.list_for_display(display_id)
        ]

    def update_view(
        self,
        view_id: int,
        name: str,
        columns: int,
        rows: int,
        content_slots: Optional[Sequence[SlotDescriptorInput]] = None,
    ) -> View:
        """
        Update name and dimensions of a view, and optionally its content slots.

        Display, position and screen type are re-read from storage, so an
        update can never move or reorder the view. Errors from the slot
        reconciliation propagate; the notification that follows is
        best-effort and cannot fail the update.
        """
        with self.view_locks.hold(view_id):
            with self.unit_of_work:
                current = ensure_found(
                    self.views.get(view_id), entity="View", identifier=view_id
                )
                self.views.update(
                    current.id,
                    name,
                    columns,
                    rows,
                    current.display_id,
                    current.position,
                    current.screen_type,
                )
                self.unit_of_work.checkpoint()

                if content_slots is not None:
                    self.slot_reconciler.reconcile(view_id, content_slots)

            updated = self.get_view(view_id)

        self._notify_views_updated(view_id, updated.display_id)
        return updated

    def delete_view(self, view_id: int) -> Optional[View]:
        """
        Delete a view with all of its content slots and their options.

        Returns:
            The deleted view including its former slots, or None if it did
            not exist.
        """
        with self.view_locks.hold(view_id):
            view = self.views.get(view_id)
            if view is None:
                return None

            deleted = view.model_copy(
                update={"content_slots": self.get_content_slots_for_view(view_id)}
            )
            with self.unit_of_work:
                self._delete_view_tree(view_id)

        self._notify_views_updated(view_id, deleted.display_id)
        return deleted

    def _delete_view_tree(self, view_id: int) -> None:
        for slot in self.content_slots.list_for_view(view_id):
            self.options.delete_all_for_slot(slot.id)
            self.unit_of_work.checkpoint()
            self.content_slots.delete(slot.id)
            self.unit_of_work.checkpoint()
        self.views.delete(view_id)
        self.unit_of_work.checkpoint()
        self.view_locks.discard(view_id)

    def _notify_views_updated(self, view_id: int, display_id: int) -> None:
        # Only affects the live-update event, never the command's result
        try:
            display = self.get_display(display_id)
            self.events.publish(ChangeEvent.VIEWS_UPDATED, display)
        except Exception:
            logger.exception(
                f"Failed to publish views update for view {view_id} "
                f"(display {display_id})"
            )

    # ============================================================
    # Content slots
    # ============================================================

    def get_content_slots_for_view(self, view_id: int) -> List[ContentSlot]:
        return [
            slot.model_copy(update={"options": self.options.get_all_for_slot(slot.id)})
            for slot in self.content_slots.list_for_view(view_id)
        ]

    def get_content_slots_for_component_type(
        self, component_type: str
    ) -> List[ContentSlot]:
        return self.content_slots.list_for_component_type(component_type)

    def update_content_slots_for_view(
        self, view_id: int, content_slots: Sequence[SlotDescriptorInput]
    ) -> List[ContentSlot]:
        """
        Reconcile the content slots of a view with the submitted list.

        Failures propagate to the caller. Unless the unit of work is atomic,
        steps applied before a failure stay persisted.
        """
        ensure_found(self.views.get(view_id), entity="View", identifier=view_id)
        with self.view_locks.hold(view_id):
            with self.unit_of_work:
                self.slot_reconciler.reconcile(view_id, content_slots)
            return self.get_content_slots_for_view(view_id)

    def get_options_for_content_slot(self, slot_id: int) -> OptionMap:
        ensure_found(
            self.content_slots.get(slot_id), entity="Content slot", identifier=slot_id
        )
        return self.options.get_all_for_slot(slot_id)

    def set_options_for_content_slot(
        self, slot_id: int, options: Optional[Mapping[str, Any]] = None
    ) -> OptionMap:
        slot = ensure_found(
            self.content_slots.get(slot_id), entity="Content slot", identifier=slot_id
        )
        with self.view_locks.hold(slot.view_id):
            with self.unit_of_work:
                return self.option_reconciler.reconcile(slot_id, options or {})
