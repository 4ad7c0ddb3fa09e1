"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 00:00:00.000000

event_records is append-only. daily_summaries holds one row per local day
(unique date). kv_records holds one JSON record per singleton key.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- event_records ---
    op.create_table(
        "event_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("timestamp", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("platform", sa.String(255), nullable=False),
        sa.Column(
            "data", sa.Text(), nullable=False,
            comment="JSON-encoded telemetry + grid context at calculation time",
        ),
        sa.Column("carbon_grams", sa.Float(), nullable=False),
        sa.Column("carbon_rate", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_event_records_id", "event_records", ["id"])
    op.create_index("ix_event_records_timestamp", "event_records", ["timestamp"])
    op.create_index("ix_event_records_type", "event_records", ["type"])
    op.create_index("ix_event_records_platform", "event_records", ["platform"])

    # --- daily_summaries ---
    op.create_table(
        "daily_summaries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("total_carbon", sa.Float(), nullable=False, server_default="0"),
        sa.Column("by_category", sa.Text(), nullable=False, comment="JSON object"),
        sa.Column("by_platform", sa.Text(), nullable=False, comment="JSON object"),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_daily_summaries_id", "daily_summaries", ["id"])
    op.create_index("ix_daily_summaries_date", "daily_summaries", ["date"], unique=True)

    # --- kv_records ---
    op.create_table(
        "kv_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_kv_records_id", "kv_records", ["id"])
    op.create_index("ix_kv_records_key", "kv_records", ["key"], unique=True)


def downgrade() -> None:
    op.drop_index("ix_kv_records_key", table_name="kv_records")
    op.drop_index("ix_kv_records_id", table_name="kv_records")
    op.drop_table("kv_records")
    op.drop_index("ix_daily_summaries_date", table_name="daily_summaries")
    op.drop_index("ix_daily_summaries_id", table_name="daily_summaries")
    op.drop_table("daily_summaries")
    op.drop_index("ix_event_records_platform", table_name="event_records")
    op.drop_index("ix_event_records_type", table_name="event_records")
    op.drop_index("ix_event_records_timestamp", table_name="event_records")
    op.drop_index("ix_event_records_id", table_name="event_records")
    op.drop_table("event_records")
