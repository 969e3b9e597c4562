"""User profile model carrying the worker rating aggregate."""

import enum
import uuid
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Enum, Float, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class UserRole(enum.Enum):
    REQUESTER = "requester"
    WORKER = "worker"
    ADMIN = "admin"


# Shared by users.role and reviews.role so both columns use one Postgres type.
user_role_enum = Enum(UserRole, name="userrole", values_callable=lambda x: [e.value for e in x])


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("review_count >= 0", name="ck_users_review_count"),
        CheckConstraint(
            "average_rating >= 0 AND average_rating <= 5", name="ck_users_average_rating"
        ),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[UserRole] = mapped_column(user_role_enum, nullable=False)
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
