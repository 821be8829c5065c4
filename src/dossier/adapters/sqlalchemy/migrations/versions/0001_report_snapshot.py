"""Create the report snapshot table.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "report_snapshot",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("report_type", sa.String(length=32), nullable=False),
        sa.Column("subject_key", sa.String(), nullable=False),
        sa.Column("business_number", sa.String(length=11), nullable=True),
        sa.Column("external_id", sa.String(), nullable=True),
        sa.Column("search_label", sa.String(), nullable=True),
        sa.Column("document", sa.JSON(), nullable=False),
        sa.Column("alert_flag", sa.Boolean(), nullable=False),
        sa.Column("alert_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_report_snapshot")),
    )
    op.create_index(
        "ix_report_snapshot_lookup",
        "report_snapshot",
        ["report_type", "subject_key", "created_at"],
    )
    op.create_index(
        "ix_report_snapshot_business_number", "report_snapshot", ["business_number"]
    )
    op.create_index(
        "ix_report_snapshot_search_label", "report_snapshot", ["report_type", "search_label"]
    )


def downgrade() -> None:
    op.drop_index("ix_report_snapshot_search_label", table_name="report_snapshot")
    op.drop_index("ix_report_snapshot_business_number", table_name="report_snapshot")
    op.drop_index("ix_report_snapshot_lookup", table_name="report_snapshot")
    op.drop_table("report_snapshot")
