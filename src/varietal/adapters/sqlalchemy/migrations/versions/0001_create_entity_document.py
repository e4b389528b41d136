"""create entity_document

Revision ID: 0001
Revises:
Create Date: 2024-11-04 09:12:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from varietal.adapters.sqlalchemy.mappings import UTCDateTime

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "entity_document",
        sa.Column("collection", sa.String(length=64), nullable=False),
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("created_date", UTCDateTime(), nullable=False),
        sa.Column("updated_date", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("collection", "id", name=op.f("pk_entity_document")),
    )
    op.create_index(
        "ix_entity_document_collection_created_date",
        "entity_document",
        ["collection", "created_date"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_entity_document_collection_created_date", table_name="entity_document")
    op.drop_table("entity_document")
