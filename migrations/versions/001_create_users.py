"""Create users table with rating aggregate columns.

Revision ID: 001
Revises: None
Create Date: 2026-10-12
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("user_id", sa.Uuid(), primary_key=True),
        sa.Column("display_name", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), unique=True, nullable=False),
        sa.Column("phone", sa.String(32), nullable=True),
        sa.Column(
            "role",
            sa.Enum("requester", "worker", "admin", name="userrole"),
            nullable=False,
        ),
        sa.Column("average_rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("review_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("review_count >= 0", name="ck_users_review_count"),
        sa.CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5", name="ck_users_average_rating"
        ),
    )
    op.create_index("ix_users_role", "users", ["role"])


def downgrade() -> None:
    op.drop_index("ix_users_role", table_name="users")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS userrole")
