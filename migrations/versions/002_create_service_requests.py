"""Create service_requests table.

Revision ID: 002
Revises: 001
Create Date: 2026-10-12
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "service_requests",
        sa.Column("request_id", sa.Uuid(), primary_key=True),
        sa.Column("requester_id", sa.Uuid(), sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("assigned_worker_id", sa.Uuid(), sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=True),
        sa.Column("service_type", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", sa.String(256), nullable=False),
        sa.Column("scheduled_date", sa.String(32), nullable=False),
        sa.Column("scheduled_time", sa.String(32), nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column("budget", sa.Numeric(12, 2), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "in_progress", "completed", name="requeststatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint(
            "(status = 'pending') = (assigned_worker_id IS NULL)",
            name="ck_service_requests_assignment",
        ),
        sa.CheckConstraint("budget IS NULL OR budget > 0", name="ck_service_requests_budget"),
    )
    op.create_index("ix_service_requests_requester_id", "service_requests", ["requester_id"])
    op.create_index("ix_service_requests_assigned_worker_id", "service_requests", ["assigned_worker_id"])
    op.create_index("ix_service_requests_status", "service_requests", ["status"])


def downgrade() -> None:
    op.drop_table("service_requests")
    op.execute("DROP TYPE IF EXISTS requeststatus")
