"""Review endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Identity, resolve_identity
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.review import ReviewCreate, ReviewResponse
from app.services import review as review_service

router = APIRouter(prefix="/reviews", tags=["reviews"], dependencies=[Depends(check_rate_limit)])


@router.post("", response_model=ReviewResponse, status_code=201)
async def submit_review(
    data: ReviewCreate,
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> ReviewResponse:
    """Review the other participant of a completed request."""
    review = await review_service.submit_review(db, identity, data)
    return ReviewResponse.model_validate(review)


@router.get("", response_model=list[ReviewResponse])
async def list_all_reviews(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> list[ReviewResponse]:
    """All reviews, newest first. Admin only."""
    reviews = await review_service.list_all_reviews(db, identity, limit, offset)
    return [ReviewResponse.model_validate(r) for r in reviews]
