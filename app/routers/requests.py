"""Service request endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Identity, Requester, Worker, require_requester, require_worker, resolve_identity
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.schemas.request import RequestCreate, RequestResponse, RequestStatusUpdate, RequestUpdate
from app.schemas.review import ReviewResponse
from app.services import assignment as assignment_service
from app.services import request as request_service
from app.services import review as review_service

router = APIRouter(prefix="/requests", tags=["requests"], dependencies=[Depends(check_rate_limit)])


@router.post("", response_model=RequestResponse, status_code=201)
async def create_request(
    data: RequestCreate,
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    """Requester posts a job for bidding."""
    service_request = await request_service.create_request(db, identity, data)
    return RequestResponse.model_validate(service_request)


@router.get("/mine", response_model=list[RequestResponse])
async def list_my_requests(
    requester: Requester = Depends(require_requester),
    db: AsyncSession = Depends(get_db),
) -> list[RequestResponse]:
    requests = await request_service.list_my_requests(db, requester)
    return [RequestResponse.model_validate(r) for r in requests]


@router.get("/open", response_model=list[RequestResponse], dependencies=[Depends(resolve_identity)])
async def list_open_requests(
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> list[RequestResponse]:
    """Requests still open for bids."""
    requests = await request_service.list_open_requests(db, limit, offset)
    return [RequestResponse.model_validate(r) for r in requests]


@router.get("/assigned", response_model=list[RequestResponse])
async def list_assigned_jobs(
    worker: Worker = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
) -> list[RequestResponse]:
    """Jobs assigned to the calling worker."""
    requests = await request_service.list_assigned_jobs(db, worker)
    return [RequestResponse.model_validate(r) for r in requests]


@router.get("/{request_id}", response_model=RequestResponse, dependencies=[Depends(resolve_identity)])
async def get_request(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    service_request = await request_service.get_request(db, request_id)
    return RequestResponse.model_validate(service_request)


@router.put("/{request_id}", response_model=RequestResponse)
async def update_request(
    request_id: uuid.UUID,
    data: RequestStatusUpdate | RequestUpdate,
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> RequestResponse:
    """Either mark an in-progress request completed (requester or assigned worker),
    or let the owner edit the details of a pending one.
    """
    if isinstance(data, RequestStatusUpdate):
        service_request = await assignment_service.complete_request(db, request_id, identity)
    else:
        service_request = await request_service.update_request(db, request_id, identity, data)
    return RequestResponse.model_validate(service_request)


@router.delete("/{request_id}", status_code=204)
async def delete_request(
    request_id: uuid.UUID,
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Withdraw a request that has not been assigned yet."""
    await request_service.delete_request(db, request_id, identity)
    return Response(status_code=204)


@router.get("/{request_id}/reviews", response_model=list[ReviewResponse])
async def get_request_reviews(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[ReviewResponse]:
    reviews = await review_service.list_reviews_for_request(db, request_id)
    return [ReviewResponse.model_validate(r) for r in reviews]
