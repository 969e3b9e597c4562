"""Service request model — the job a requester posts for bidding."""

import enum
import uuid
from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Enum, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class RequestStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# Valid state transitions. Forward only, no skipping.
VALID_TRANSITIONS: dict[RequestStatus, set[RequestStatus]] = {
    RequestStatus.PENDING: {RequestStatus.IN_PROGRESS},
    RequestStatus.IN_PROGRESS: {RequestStatus.COMPLETED},
    RequestStatus.COMPLETED: set(),
}


class ServiceRequest(Base):
    __tablename__ = "service_requests"
    __table_args__ = (
        CheckConstraint(
            "(status = 'pending') = (assigned_worker_id IS NULL)",
            name="ck_service_requests_assignment",
        ),
        CheckConstraint("budget IS NULL OR budget > 0", name="ck_service_requests_budget"),
    )

    request_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True
    )
    assigned_worker_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=True, index=True
    )
    service_type: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(String(256), nullable=False)
    scheduled_date: Mapped[str] = mapped_column(String(32), nullable=False)
    scheduled_time: Mapped[str] = mapped_column(String(32), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    budget: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=RequestStatus.PENDING,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )

    def is_participant(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.requester_id, self.assigned_worker_id)

    def counterpart_of(self, user_id: uuid.UUID) -> uuid.UUID | None:
        """The other participant relative to user_id, or None for outsiders."""
        if user_id == self.requester_id:
            return self.assigned_worker_id
        if self.assigned_worker_id is not None and user_id == self.assigned_worker_id:
            return self.requester_id
        return None
