"""
View routes - layouts and their content slots
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from signage.dependencies import get_display_service
from signage.display_service import DisplayService
from signage.models import ContentSlot, ContentSlotDescriptor, View, ViewUpdate

router = APIRouter(prefix="/views", tags=["Views"])


@router.get("/{view_id}", response_model=View)
async def get_view(
    view_id: int,
    service: DisplayService = Depends(get_display_service),
) -> View:
    """Get a view with its content slots and their options."""
    return service.get_view(view_id)


@router.put("/{view_id}", response_model=View)
async def update_view(
    view_id: int,
    view: ViewUpdate,
    service: DisplayService = Depends(get_display_service),
) -> View:
    """
    Update a view.

    Name and dimensions are replaced. When ``content_slots`` is given it is
    the complete desired slot list: slots left out are deleted, slots without
    an ``id`` are created and the others are updated in place.
    """
    return service.update_view(
        view_id,
        name=view.name,
        columns=view.columns,
        rows=view.rows,
        content_slots=view.content_slots,
    )


@router.delete("/{view_id}", response_model=View)
async def delete_view(
    view_id: int,
    service: DisplayService = Depends(get_display_service),
) -> View:
    """Delete a view with its content slots."""
    deleted = service.delete_view(view_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail=f"View '{view_id}' not found")
    return deleted


@router.get("/{view_id}/content-slots", response_model=List[ContentSlot])
async def list_content_slots(
    view_id: int,
    service: DisplayService = Depends(get_display_service),
) -> List[ContentSlot]:
    """List the content slots of a view."""
    service.get_view(view_id)
    return service.get_content_slots_for_view(view_id)


@router.put("/{view_id}/content-slots", response_model=List[ContentSlot])
async def replace_content_slots(
    view_id: int,
    content_slots: List[ContentSlotDescriptor],
    service: DisplayService = Depends(get_display_service),
) -> List[ContentSlot]:
    """Reconcile the content slots of a view with the submitted list."""
    return service.update_content_slots_for_view(view_id, content_slots)
