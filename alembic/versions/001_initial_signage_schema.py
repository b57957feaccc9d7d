"""initial signage schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates displays, views, content_slots and content_slot_options.
"""

import os
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial_signage_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Schema name
SCHEMA = os.getenv("DATABASE_SCHEMA") or None


def _fk(column: str) -> str:
    return f"{SCHEMA}.{column}" if SCHEMA else column


def upgrade() -> None:
    op.create_table(
        "displays",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("client_id", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("location", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_id"),
        schema=SCHEMA,
        sqlite_autoincrement=True,
    )
    op.create_index("ix_displays_client_id", "displays", ["client_id"], schema=SCHEMA)

    op.create_table(
        "views",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("columns", sa.Integer(), nullable=False),
        sa.Column("rows", sa.Integer(), nullable=False),
        sa.Column("display_id", sa.Integer(), nullable=False),
        sa.Column("screen_type", sa.String(50), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["display_id"], [_fk("displays.id")]),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
        sqlite_autoincrement=True,
    )
    op.create_index("ix_views_display_id", "views", ["display_id"], schema=SCHEMA)

    op.create_table(
        "content_slots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("component_type", sa.String(100), nullable=False),
        sa.Column("view_id", sa.Integer(), nullable=False),
        sa.Column("column_start", sa.Integer(), nullable=False),
        sa.Column("row_start", sa.Integer(), nullable=False),
        sa.Column("column_end", sa.Integer(), nullable=False),
        sa.Column("row_end", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["view_id"], [_fk("views.id")]),
        sa.PrimaryKeyConstraint("id"),
        schema=SCHEMA,
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_content_slots_view_id", "content_slots", ["view_id"], schema=SCHEMA
    )
    op.create_index(
        "ix_content_slots_component_type",
        "content_slots",
        ["component_type"],
        schema=SCHEMA,
    )

    op.create_table(
        "content_slot_options",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content_slot_id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", sa.JSON(), nullable=True),
        sa.ForeignKeyConstraint(["content_slot_id"], [_fk("content_slots.id")]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "content_slot_id", "key", name="uq_content_slot_option_key"
        ),
        schema=SCHEMA,
        sqlite_autoincrement=True,
    )
    op.create_index(
        "ix_content_slot_options_content_slot_id",
        "content_slot_options",
        ["content_slot_id"],
        schema=SCHEMA,
    )


def downgrade() -> None:
    op.drop_table("content_slot_options", schema=SCHEMA)
    op.drop_table("content_slots", schema=SCHEMA)
    op.drop_table("views", schema=SCHEMA)
    op.drop_table("displays", schema=SCHEMA)
