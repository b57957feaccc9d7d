"""
SQLAlchemy ORM models for the signage database.

Ownership runs display -> views -> content slots -> options. Foreign keys are
declared, but the service deletes children itself before their parent, so no
``ON DELETE CASCADE`` is relied on.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from signage.database import Base, qualified, table_args


class Display(Base):
    """Physical or virtual screen rendering one or more views."""

    __tablename__ = "displays"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    active = Column(Boolean, default=False, nullable=False)
    client_id = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=False, default="")

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "active": self.active,
            "client_id": self.client_id,
            "description": self.description,
            "location": self.location,
        }


class View(Base):
    """Named grid layout belonging to one display and one screen-type group."""

    __tablename__ = "views"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    columns = Column(Integer, nullable=False)
    rows = Column(Integer, nullable=False)
    display_id = Column(
        Integer,
        ForeignKey(qualified("displays.id")),
        nullable=False,
        index=True,
    )
    screen_type = Column(String(50), nullable=False)
    # 1-based order inside the (display_id, screen_type) group
    position = Column(Integer, nullable=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "columns": self.columns,
            "rows": self.rows,
            "display_id": self.display_id,
            "screen_type": self.screen_type,
            "position": self.position,
        }


class ContentSlot(Base):
    """Rectangular grid region of a view holding one component."""

    __tablename__ = "content_slots"
    __table_args__ = table_args()

    id = Column(Integer, primary_key=True, index=True)
    component_type = Column(String(100), nullable=False, index=True)
    view_id = Column(
        Integer,
        ForeignKey(qualified("views.id")),
        nullable=False,
        index=True,
    )

    # Grid placement, opaque to the service
    column_start = Column(Integer, nullable=False)
    row_start = Column(Integer, nullable=False)
    column_end = Column(Integer, nullable=False)
    row_end = Column(Integer, nullable=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "id": self.id,
            "component_type": self.component_type,
            "view_id": self.view_id,
            "column_start": self.column_start,
            "row_start": self.row_start,
            "column_end": self.column_end,
            "row_end": self.row_end,
        }


class ContentSlotOption(Base):
    """Key/value attribute configuring the component of a content slot."""

    __tablename__ = "content_slot_options"
    __table_args__ = (
        UniqueConstraint("content_slot_id", "key", name="uq_content_slot_option_key"),
        table_args(),
    )

    id = Column(Integer, primary_key=True, index=True)
    content_slot_id = Column(
        Integer,
        ForeignKey(qualified("content_slots.id")),
        nullable=False,
        index=True,
    )
    key = Column(String(255), nullable=False)
    # JSON scalar: str, int, float, bool or null
    value = Column(JSON, nullable=True)
