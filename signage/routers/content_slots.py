"""
Content slot routes - lookups and slot options
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from signage.dependencies import get_display_service
from signage.display_service import DisplayService
from signage.models import ContentSlot, OptionMap

router = APIRouter(prefix="/content-slots", tags=["Content Slots"])


@router.get("", response_model=List[ContentSlot])
async def list_content_slots_by_component_type(
    component_type: str = Query(description="Component type to filter on"),
    service: DisplayService = Depends(get_display_service),
) -> List[ContentSlot]:
    """List every content slot rendering the given component type."""
    return service.get_content_slots_for_component_type(component_type)


@router.get("/{slot_id}/options", response_model=OptionMap)
async def get_options(
    slot_id: int,
    service: DisplayService = Depends(get_display_service),
) -> OptionMap:
    return service.get_options_for_content_slot(slot_id)


@router.put("/{slot_id}/options", response_model=OptionMap)
async def set_options(
    slot_id: int,
    options: OptionMap,
    service: DisplayService = Depends(get_display_service),
) -> OptionMap:
    """
    Replace the options of a content slot.

    Keys left out are deleted; the response is the stored option map.
    """
    return service.set_options_for_content_slot(slot_id, options)
