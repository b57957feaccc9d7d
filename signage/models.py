"""
Signage Layout Service
Pydantic models for the HTTP API, repositories and live-update messages
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr

# Closed scalar variant for content slot option values
OptionValue = Union[StrictBool, StrictInt, StrictFloat, StrictStr, None]

OptionMap = Dict[str, OptionValue]


# Enums
class LiveMessageType(str, Enum):
    AUTH_SUCCESS = "auth_success"
    AUTH_ERROR = "auth_error"


# Display Models
class DisplayCreate(BaseModel):
    name: str
    active: bool = False
    client_id: str = Field(description="Identifier the physical display connects with")
    description: str = ""
    location: str = ""


class DisplayUpdate(BaseModel):
    name: str
    active: bool
    client_id: str
    description: str = ""
    location: str = ""


class Display(BaseModel):
    id: int
    name: str
    active: bool
    client_id: str
    description: str = ""
    location: str = ""


# Content Slot Models
class ContentSlotDescriptor(BaseModel):
    """
    Desired state of one content slot, as submitted for reconciliation.

    A descriptor without ``id`` creates a new slot; one with ``id`` updates the
    persisted slot with that identity. ``options`` defaults to no options.
    """

    id: Optional[int] = None
    component_type: str
    column_start: int
    row_start: int
    column_end: int
    row_end: int
    options: Optional[OptionMap] = None


class ContentSlot(BaseModel):
    id: int
    component_type: str
    view_id: int
    column_start: int
    row_start: int
    column_end: int
    row_end: int
    options: Optional[OptionMap] = None


# View Models
class ViewCreate(BaseModel):
    name: str
    columns: int
    rows: int
    screen_type: str = Field(description="Screen-type group the view is appended to")


class ViewUpdate(BaseModel):
    """Request to update a view. Display, screen type and position are fixed."""

    name: str
    columns: int
    rows: int
    content_slots: Optional[List[ContentSlotDescriptor]] = Field(
        default=None,
        description="Full desired slot list; omit to leave the slots untouched",
    )


class View(BaseModel):
    id: int
    name: str
    columns: int
    rows: int
    display_id: int
    screen_type: str
    position: int
    content_slots: Optional[List[ContentSlot]] = None


# Live display authentication
class DisplayTokenRequest(BaseModel):
    client_id: str


class DisplayTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class LiveMessage(BaseModel):
    """Message pushed to a connected display."""

    event: str
    data: Dict[str, Any] = Field(default_factory=dict)


# Errors
class ErrorDetail(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: ErrorDetail
