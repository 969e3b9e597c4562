"""User profile business logic."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import Conflict, NotFound
from app.models.user import User, UserRole
from app.schemas.user import UserCreate

logger = logging.getLogger(__name__)


async def register_user(db: AsyncSession, data: UserCreate) -> User:
    """Create a profile row for an identity issued by the auth gateway."""
    existing = await db.execute(select(User).where(User.email == data.email))
    if existing.scalar_one_or_none() is not None:
        raise Conflict("Email already registered")

    user = User(
        user_id=uuid.uuid4(),
        display_name=data.display_name,
        email=data.email,
        phone=data.phone,
        role=UserRole(data.role),
        average_rating=0.0,
        review_count=0,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Email already registered")
    await db.refresh(user)
    logger.info("Registered %s %s", user.role.value, user.user_id)
    return user


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    result = await db.execute(
        select(User)
        .where(User.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFound("User not found")
    return user


async def list_workers(db: AsyncSession, limit: int = 50, offset: int = 0) -> list[User]:
    """Workers, best rated first."""
    result = await db.execute(
        select(User)
        .where(User.role == UserRole.WORKER)
        .execution_options(populate_existing=True)
        .order_by(User.average_rating.desc(), User.review_count.desc(), User.created_at.asc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())
