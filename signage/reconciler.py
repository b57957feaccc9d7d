"""
Reconciliation of content slots and their options.

Clients submit the full desired slot list of a view, each slot with its full
desired option map. The reconcilers diff that against storage and issue the
creates, updates and deletes needed to make storage match it exactly.

Every step runs sequentially and is followed by a unit-of-work checkpoint.
The first failure aborts the remaining steps; whether the steps already taken
stay persisted depends on the unit of work (see ``signage.unit_of_work``).
"""

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import TypeAdapter, ValidationError

from signage.exceptions import NotFoundError, ValidationFailure
from signage.models import ContentSlotDescriptor, OptionMap
from signage.repositories import ContentSlotOptionRepository, ContentSlotRepository
from signage.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

SlotDescriptorInput = Union[ContentSlotDescriptor, Mapping[str, Any]]

_option_map_adapter = TypeAdapter(OptionMap)
_descriptor_list_adapter = TypeAdapter(List[ContentSlotDescriptor])


def validate_options(options: Optional[Mapping[str, Any]]) -> OptionMap:
    """Validate a desired option map, keeping its iteration order."""
    if options is None:
        return {}
    try:
        return _option_map_adapter.validate_python(dict(options))
    except ValidationError as e:
        raise ValidationFailure(f"Invalid content slot options: {e}") from e


def validate_descriptors(
    descriptors: Sequence[SlotDescriptorInput],
) -> List[ContentSlotDescriptor]:
    """
    Coerce submitted slot descriptors into ``ContentSlotDescriptor`` models.

    Raises:
        ValidationFailure: If a descriptor is malformed or an identity is
            submitted more than once.
    """
    try:
        validated = _descriptor_list_adapter.validate_python(
            [
                d.model_dump() if isinstance(d, ContentSlotDescriptor) else d
                for d in descriptors
            ]
        )
    except ValidationError as e:
        raise ValidationFailure(f"Invalid content slot descriptor: {e}") from e

    seen = set()
    for descriptor in validated:
        if descriptor.id is None:
            continue
        if descriptor.id in seen:
            raise ValidationFailure(
                f"Content slot {descriptor.id} submitted more than once"
            )
        seen.add(descriptor.id)

    return validated


class OptionSetReconciler:
    """Converge the persisted option map of one content slot."""

    def __init__(self, options: ContentSlotOptionRepository, unit_of_work: UnitOfWork):
        self.options = options
        self.unit_of_work = unit_of_work

    def reconcile(
        self, slot_id: int, desired: Optional[Mapping[str, Any]] = None
    ) -> OptionMap:
        """
        Make the options of ``slot_id`` equal ``desired``.

        Keys missing from ``desired`` are deleted first; then each desired
        key is updated or created in the mapping's own order.

        Returns:
            The option map as re-read from storage.
        """
        desired = validate_options(desired)
        existing = self.options.get_all_for_slot(slot_id)

        for key in existing:
            if key not in desired:
                logger.debug(f"Deleting option {key!r} of content slot {slot_id}")
                self.options.delete(slot_id, key)
                self.unit_of_work.checkpoint()

        for key, value in desired.items():
            if key in existing:
                self.options.update(slot_id, key, value)
            else:
                logger.debug(f"Creating option {key!r} of content slot {slot_id}")
                self.options.create(slot_id, key, value)
            self.unit_of_work.checkpoint()

        return self.options.get_all_for_slot(slot_id)


class ContentSlotReconciler:
    """Converge the persisted content slots of one view."""

    def __init__(
        self,
        content_slots: ContentSlotRepository,
        options: ContentSlotOptionRepository,
        unit_of_work: UnitOfWork,
        option_reconciler: Optional[OptionSetReconciler] = None,
    ):
        self.content_slots = content_slots
        self.options = options
        self.unit_of_work = unit_of_work
        self.option_reconciler = option_reconciler or OptionSetReconciler(
            options, unit_of_work
        )

    def reconcile(
        self, view_id: int, desired: Sequence[SlotDescriptorInput]
    ) -> List[int]:
        """
        Make the content slots of ``view_id`` match ``desired``.

        Slots whose identity is absent from ``desired`` are removed, options
        first. Descriptors without an identity create new slots; those with
        one update the persisted slot in place. The slot's view is always
        ``view_id``, never taken from the descriptor.

        Returns:
            The identities of the resulting slots, in submitted order.

        Raises:
            ValidationFailure: If ``desired`` is malformed. Nothing has been
                changed at that point.
            NotFoundError: If a submitted identity is not a slot of this view.
        """
        descriptors = validate_descriptors(desired)

        existing = self.content_slots.list_for_view(view_id)
        submitted_ids = {d.id for d in descriptors if d.id is not None}
        removed = [slot for slot in existing if slot.id not in submitted_ids]

        for slot in removed:
            # No cascade in storage: options must go before their slot
            self.options.delete_all_for_slot(slot.id)
            self.unit_of_work.checkpoint()
            logger.debug(f"Deleting content slot {slot.id} of view {view_id}")
            self.content_slots.delete(slot.id)
            self.unit_of_work.checkpoint()

        created = 0
        slot_ids: List[int] = []
        for descriptor in descriptors:
            if descriptor.id is None:
                slot_id = self.content_slots.create(
                    descriptor.component_type,
                    view_id,
                    descriptor.column_start,
                    descriptor.row_start,
                    descriptor.column_end,
                    descriptor.row_end,
                )
                self.unit_of_work.checkpoint()
                logger.debug(f"Created content slot {slot_id} in view {view_id}")
                created += 1
            else:
                current = self.content_slots.get(descriptor.id)
                if current is None or current.view_id != view_id:
                    raise NotFoundError("Content slot", descriptor.id)

                slot_id = current.id
                self.content_slots.update(
                    slot_id,
                    descriptor.component_type,
                    view_id,
                    descriptor.column_start,
                    descriptor.row_start,
                    descriptor.column_end,
                    descriptor.row_end,
                )
                self.unit_of_work.checkpoint()

            self.option_reconciler.reconcile(slot_id, descriptor.options or {})
            slot_ids.append(slot_id)

        logger.info(
            f"Reconciled view {view_id}: {len(removed)} removed, "
            f"{created} created, {len(slot_ids) - created} updated"
        )
        return slot_ids
