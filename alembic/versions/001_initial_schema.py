"""Initial schema — entity collection blobs.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── 1. collections (users / likes / matches / messages) ─────────
    op.create_table(
        "collections",
        sa.Column("kind", sa.String(32), primary_key=True),
        sa.Column(
            "payload",
            sa.Text,
            nullable=False,
            comment="JSON array of entity records",
        ),
        sa.Column("version", sa.Integer, server_default="1", nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )


def downgrade() -> None:
    op.drop_table("collections")
