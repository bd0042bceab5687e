"""Add meeting_overrides table for manual portfolio-relevance decisions.

Revision ID: 001_meeting_overrides
Revises:
Create Date: 2026-10-17

One row per derived meeting id. The id is the artifact grouping key, so it
is a string primary key rather than a UUID.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_meeting_overrides"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── meeting_overrides table ──────────────────────────────────────────

    op.create_table(
        "meeting_overrides",
        sa.Column("meeting_id", sa.String(300), primary_key=True),
        sa.Column(
            "is_portfolio_relevant",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index(
        "ix_meeting_overrides_updated_at",
        "meeting_overrides",
        ["updated_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_meeting_overrides_updated_at", table_name="meeting_overrides")
    op.drop_table("meeting_overrides")
