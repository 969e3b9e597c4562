"""User profile and rating endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.review import ReviewResponse
from app.schemas.user import RatingResponse, UserCreate, UserResponse
from app.services import rating as rating_service
from app.services import review as review_service
from app.services import user as user_service

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(check_rate_limit)])


@router.post("", response_model=UserResponse, status_code=201)
async def register_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Create the profile for an identity issued by the auth gateway."""
    user = await user_service.register_user(db, data)
    return UserResponse.model_validate(user)


@router.get("/workers", response_model=list[UserResponse])
async def list_workers(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> list[UserResponse]:
    """Workers, best rated first."""
    workers = await user_service.list_workers(db, limit, offset)
    return [UserResponse.model_validate(w) for w in workers]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    user = await user_service.get_user(db, user_id)
    return UserResponse.model_validate(user)


@router.get("/{user_id}/rating", response_model=RatingResponse)
async def get_rating(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> RatingResponse:
    return await rating_service.get_rating(db, user_id)


@router.get("/{user_id}/reviews", response_model=list[ReviewResponse])
async def get_user_reviews(
    user_id: uuid.UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> list[ReviewResponse]:
    """Reviews a user has received. Public."""
    reviews = await review_service.list_reviews_for_user(db, user_id, limit, offset)
    return [ReviewResponse.model_validate(r) for r in reviews]
