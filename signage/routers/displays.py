"""
Display routes - screens and the views they render
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from signage.dependencies import get_display_service
from signage.display_service import DisplayService
from signage.models import Display, DisplayCreate, DisplayUpdate, View, ViewCreate

router = APIRouter(prefix="/displays", tags=["Displays"])


@router.get("", response_model=List[Display])
async def list_displays(
    service: DisplayService = Depends(get_display_service),
) -> List[Display]:
    """List all displays."""
    return service.list_displays()


@router.post("", response_model=Display, status_code=201)
async def create_display(
    display: DisplayCreate,
    service: DisplayService = Depends(get_display_service),
) -> Display:
    """
    Create a new display.

    Connected live clients are notified with a ``display_created`` event.
    """
    return service.create_display(
        name=display.name,
        active=display.active,
        client_id=display.client_id,
        description=display.description,
        location=display.location,
    )


@router.get("/{display_id}", response_model=Display)
async def get_display(
    display_id: int,
    service: DisplayService = Depends(get_display_service),
) -> Display:
    """Get a single display."""
    return service.get_display(display_id)


@router.put("/{display_id}", response_model=Display)
async def update_display(
    display_id: int,
    display: DisplayUpdate,
    service: DisplayService = Depends(get_display_service),
) -> Display:
    """Replace the attributes of a display."""
    return service.update_display(
        display_id,
        name=display.name,
        active=display.active,
        client_id=display.client_id,
        description=display.description,
        location=display.location,
    )


@router.delete("/{display_id}", response_model=Display)
async def delete_display(
    display_id: int,
    service: DisplayService = Depends(get_display_service),
) -> Display:
    """
    Delete a display.

    All views of the display are deleted with it, including their content
    slots and slot options.
    """
    deleted = service.delete_display(display_id)
    if deleted is None:
        raise HTTPException(status_code=404, detail=f"Display '{display_id}' not found")
    return deleted


@router.get("/{display_id}/views", response_model=List[View])
async def list_views(
    display_id: int,
    service: DisplayService = Depends(get_display_service),
) -> List[View]:
    """List the views of a display, each with its content slots."""
    return service.get_views_for_display(display_id)


@router.post("/{display_id}/views", response_model=View, status_code=201)
async def create_view(
    display_id: int,
    view: ViewCreate,
    service: DisplayService = Depends(get_display_service),
) -> View:
    """
    Create a new view.

    The view is appended as the last view of its screen type on the display.
    """
    return service.create_view(
        name=view.name,
        columns=view.columns,
        rows=view.rows,
        display_id=display_id,
        screen_type=view.screen_type,
    )
