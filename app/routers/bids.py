"""Bid endpoints."""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Identity, Worker, require_worker, resolve_identity
from app.auth.rate_limit import check_rate_limit
from app.database import get_db
from app.models.bid import Bid
from app.schemas.bid import AcceptBidResponse, BidCreate, BidListItem, BidResponse
from app.schemas.request import RequestResponse
from app.services import assignment as assignment_service
from app.services import bid as bid_service

router = APIRouter(prefix="/bids", tags=["bids"], dependencies=[Depends(check_rate_limit)])


def _list_item(bid: Bid, is_open: bool) -> BidListItem:
    return BidListItem(**BidResponse.model_validate(bid).model_dump(), is_open=is_open)


@router.post("", response_model=BidResponse, status_code=201)
async def submit_bid(
    data: BidCreate,
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> BidResponse:
    """Worker bids on an open request."""
    bid = await bid_service.submit_bid(db, data.request_id, identity, data.amount)
    return BidResponse.model_validate(bid)


@router.get("/mine", response_model=list[BidListItem])
async def list_my_bids(
    worker: Worker = Depends(require_worker),
    db: AsyncSession = Depends(get_db),
) -> list[BidListItem]:
    bids = await bid_service.list_worker_bids(db, worker)
    return [_list_item(bid, is_open) for bid, is_open in bids]


@router.get("/{request_id}", response_model=list[BidListItem], dependencies=[Depends(resolve_identity)])
async def list_bids(
    request_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[BidListItem]:
    """Bids on a request, newest first."""
    bids = await bid_service.list_bids(db, request_id)
    return [_list_item(bid, is_open) for bid, is_open in bids]


@router.put("/{bid_id}/accept", response_model=AcceptBidResponse)
async def accept_bid(
    bid_id: uuid.UUID,
    identity: Identity = Depends(resolve_identity),
    db: AsyncSession = Depends(get_db),
) -> AcceptBidResponse:
    """Requester accepts a bid and assigns its worker."""
    bid, service_request = await assignment_service.accept_bid(db, bid_id, identity)
    return AcceptBidResponse(
        message="Bid accepted successfully",
        bid=BidResponse.model_validate(bid),
        request=RequestResponse.model_validate(service_request),
    )
