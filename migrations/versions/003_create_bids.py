"""Create bids table.

One bid per worker per request, and at most one accepted bid per request
(partial unique index).

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bids",
        sa.Column("bid_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "request_id", sa.Uuid(),
            sa.ForeignKey("service_requests.request_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("worker_id", sa.Uuid(), sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "status",
            sa.Enum("pending", "accepted", "rejected", name="bidstatus"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_bids_amount"),
        sa.UniqueConstraint("request_id", "worker_id", name="uq_bids_request_worker"),
    )
    op.create_index("ix_bids_request_id", "bids", ["request_id"])
    op.create_index(
        "uq_bids_one_accepted_per_request",
        "bids",
        ["request_id"],
        unique=True,
        postgresql_where=sa.text("status = 'accepted'"),
    )


def downgrade() -> None:
    op.drop_index("uq_bids_one_accepted_per_request", table_name="bids")
    op.drop_table("bids")
    op.execute("DROP TYPE IF EXISTS bidstatus")
