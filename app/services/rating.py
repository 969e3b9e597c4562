"""Rating aggregator: running average of the ratings a user has received."""

import logging
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFound
from app.models.user import User
from app.schemas.user import RatingResponse

logger = logging.getLogger(__name__)


def running_average(average, count, rating: int):  # type: ignore[no-untyped-def]
    """Fold one more rating into an average over ``count`` ratings.

    Works on plain numbers and on SQL column expressions alike.
    """
    return (average * count + rating) / (count + 1)


async def apply_rating(
    db: AsyncSession, reviewee_id: uuid.UUID, rating: int
) -> tuple[float, int]:
    """Add a rating to the reviewee's aggregate inside the caller's transaction.

    The new values are computed from the row's current columns in a single
    UPDATE, so concurrent ratings for the same user queue on the row lock and
    each one folds into whatever the previous writer committed.
    """
    result = await db.execute(
        update(User)
        .where(User.user_id == reviewee_id)
        .values(
            average_rating=running_average(User.average_rating, User.review_count, rating),
            review_count=User.review_count + 1,
        )
        .returning(User.average_rating, User.review_count)
        .execution_options(synchronize_session=False)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("Reviewee not found")

    logger.info(
        "Rating %d applied to %s: average %.4f over %d reviews",
        rating, reviewee_id, row.average_rating, row.review_count,
    )
    return row.average_rating, row.review_count


async def get_rating(db: AsyncSession, user_id: uuid.UUID) -> RatingResponse:
    result = await db.execute(
        select(User.user_id, User.average_rating, User.review_count).where(User.user_id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        raise NotFound("User not found")
    return RatingResponse(user_id=row.user_id, average_rating=row.average_rating, review_count=row.review_count)
