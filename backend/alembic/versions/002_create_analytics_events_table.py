"""Create analytics_events table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Append-only store for tracked analytics events.
How:   Every column is NOT NULL; the ingestion service fills defaults
       before inserting.

Rollback: downgrade() drops the table (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "analytics_events",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column(
            "event_data",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("session_id", sa.String(255), nullable=False),
        sa.Column("user_agent", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=False),
        sa.Column("location", postgresql.JSONB(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Summary window scan (ORDER BY created_at DESC)
    op.create_index(
        "idx_analytics_events_created_at",
        "analytics_events",
        [sa.text("created_at DESC")],
    )
    op.create_index(
        "idx_analytics_events_type_created",
        "analytics_events",
        ["event_type", "created_at"],
    )
    # Per-user summaries
    op.create_index(
        "idx_analytics_events_user_created",
        "analytics_events",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_analytics_events_user_created", table_name="analytics_events")
    op.drop_index("idx_analytics_events_type_created", table_name="analytics_events")
    op.drop_index("idx_analytics_events_created_at", table_name="analytics_events")
    op.drop_table("analytics_events")
