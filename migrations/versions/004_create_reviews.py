"""Create reviews table.

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "reviews",
        sa.Column("review_id", sa.Uuid(), primary_key=True),
        sa.Column(
            "request_id", sa.Uuid(),
            sa.ForeignKey("service_requests.request_id", ondelete="RESTRICT"), nullable=False,
        ),
        sa.Column("reviewer_id", sa.Uuid(), sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False),
        sa.Column("reviewee_id", sa.Uuid(), sa.ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False),
        # userrole type is created with the users table
        sa.Column("role", ENUM(name="userrole", create_type=False), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating"),
        sa.CheckConstraint("reviewer_id <> reviewee_id", name="ck_reviews_distinct_parties"),
        sa.UniqueConstraint("request_id", "reviewer_id", name="uq_reviews_request_reviewer"),
    )
    op.create_index("ix_reviews_reviewee_id", "reviews", ["reviewee_id"])
    op.create_index("ix_reviews_request_id", "reviews", ["request_id"])


def downgrade() -> None:
    op.drop_table("reviews")
