"""Initial schema — temperature_samples.

Revision ID: 0001
Revises:
Create Date: 2026-10-17 00:00:00
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── temperature_samples: one row per (city, fetch_date, target_date, hour) ──
    op.create_table(
        "temperature_samples",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("city", sa.String(50), nullable=False),
        sa.Column("fetch_date", sa.Date, nullable=False),
        sa.Column("target_date", sa.Date, nullable=False),
        sa.Column("hour", sa.Integer, nullable=False),
        sa.Column("temperature", sa.Float, nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.UniqueConstraint(
            "city", "fetch_date", "target_date", "hour",
            name="uq_samples_city_fetch_target_hour",
        ),
        sa.CheckConstraint("hour >= 0 AND hour <= 23", name="ck_samples_hour_range"),
    )
    op.create_index(
        "ix_samples_city_target_date", "temperature_samples", ["city", "target_date"]
    )
    # Retention cleanup scans by fetch_date
    op.create_index("ix_samples_fetch_date", "temperature_samples", ["fetch_date"])


def downgrade() -> None:
    op.drop_index("ix_samples_fetch_date", table_name="temperature_samples")
    op.drop_index("ix_samples_city_target_date", table_name="temperature_samples")
    op.drop_table("temperature_samples")
