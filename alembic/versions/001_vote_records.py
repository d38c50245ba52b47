"""Baseline schema -- vote_records table.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: str | None = None


def upgrade() -> None:
    op.create_table(
        "vote_records",
        sa.Column("item", sa.String(64), primary_key=True),
        sa.Column("reviewers", sa.JSON(), nullable=False),
        sa.Column("upvoters", sa.JSON(), nullable=False),
        sa.Column("downvoters", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("vote_records")
