"""Review gate: post-completion reviews between the two participants."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Admin, Identity
from app.errors import (
    Conflict,
    InvalidArgument,
    InvalidState,
    Unauthorized,
    violates_constraint,
)
from app.models.request import RequestStatus
from app.models.review import Review
from app.schemas.review import ReviewCreate
from app.services.rating import apply_rating
from app.services.request import get_request

logger = logging.getLogger(__name__)


def _validate(data: ReviewCreate) -> tuple[int, str]:
    if data.rating is None or data.comment is None or not data.comment.strip():
        raise InvalidArgument("Please provide all fields: rating and comment are required")
    if not 1 <= data.rating <= 5:
        raise InvalidArgument("Rating must be between 1 and 5")
    return data.rating, data.comment.strip()


async def submit_review(
    db: AsyncSession, reviewer: Identity, data: ReviewCreate
) -> Review:
    """File a review of the other participant of a completed request.

    The review row and the reviewee's rating aggregate commit together.
    """
    rating, comment = _validate(data)

    service_request = await get_request(db, data.request_id)
    if service_request.status != RequestStatus.COMPLETED:
        raise InvalidState("Can only review completed requests")
    if service_request.assigned_worker_id is None:
        raise InvalidState("Request has no assigned worker")

    counterpart = service_request.counterpart_of(reviewer.user_id)
    if counterpart is None:
        raise Unauthorized("Only participants of this request can leave reviews")
    if data.reviewee_id != counterpart:
        raise Unauthorized("You can only review the other participant of this request")

    existing = await db.execute(
        select(Review.review_id).where(
            Review.request_id == data.request_id,
            Review.reviewer_id == reviewer.user_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict("You have already reviewed this request")

    review = Review(
        review_id=uuid.uuid4(),
        request_id=data.request_id,
        reviewer_id=reviewer.user_id,
        reviewee_id=counterpart,
        role=reviewer.role,
        rating=rating,
        comment=comment,
    )
    db.add(review)
    try:
        # Insert first: a concurrent duplicate fails here, before the aggregate moves.
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if violates_constraint(exc, "uq_reviews_request_reviewer"):
            raise Conflict("You have already reviewed this request")
        raise

    try:
        await apply_rating(db, counterpart, rating)
    except Exception:
        # The review row must not outlive a failed aggregate update.
        await db.rollback()
        raise

    await db.commit()
    await db.refresh(review)
    logger.info(
        "Review %s: %s rated %s %d on request %s",
        review.review_id, reviewer.user_id, counterpart, rating, data.request_id,
    )
    return review


async def list_reviews_for_user(
    db: AsyncSession, user_id: uuid.UUID, limit: int = 20, offset: int = 0
) -> list[Review]:
    """Reviews the user received, newest first."""
    result = await db.execute(
        select(Review)
        .where(Review.reviewee_id == user_id)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def list_reviews_for_request(db: AsyncSession, request_id: uuid.UUID) -> list[Review]:
    await get_request(db, request_id)
    result = await db.execute(
        select(Review)
        .where(Review.request_id == request_id)
        .order_by(Review.created_at.asc())
    )
    return list(result.scalars().all())


async def list_all_reviews(
    db: AsyncSession, actor: Identity, limit: int = 100, offset: int = 0
) -> list[Review]:
    if not isinstance(actor, Admin):
        raise Unauthorized("Admin access required")
    result = await db.execute(
        select(Review)
        .order_by(Review.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
