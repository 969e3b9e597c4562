"""Bid ledger: submission and listing of worker bids."""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Identity, Worker
from app.errors import Conflict, InvalidArgument, InvalidState, NotFound, Unauthorized, violates_constraint
from app.models.bid import Bid, BidStatus
from app.models.request import RequestStatus, ServiceRequest
from app.services.request import get_request

logger = logging.getLogger(__name__)


async def submit_bid(
    db: AsyncSession,
    request_id: uuid.UUID,
    worker: Identity,
    amount: Decimal,
) -> Bid:
    """Worker places a bid on an open request. One bid per worker per request."""
    if not isinstance(worker, Worker):
        raise Unauthorized("Only workers can place bids")
    if amount is None or amount <= 0:
        raise InvalidArgument("Bid amount must be greater than zero")

    service_request = await get_request(db, request_id)
    if service_request.status != RequestStatus.PENDING:
        raise InvalidState(
            f"Request is no longer open for bids (status {service_request.status.value})"
        )

    existing = await db.execute(
        select(Bid.bid_id).where(
            Bid.request_id == request_id,
            Bid.worker_id == worker.user_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise Conflict("You have already placed a bid for this request")

    bid = Bid(
        bid_id=uuid.uuid4(),
        request_id=request_id,
        worker_id=worker.user_id,
        amount=amount,
        status=BidStatus.PENDING,
    )
    db.add(bid)
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        # Lost a race with a concurrent submission from the same worker.
        if violates_constraint(exc, "uq_bids_request_worker"):
            raise Conflict("You have already placed a bid for this request")
        # Or with the owner deleting the request.
        if violates_constraint(exc, "bids_request_id_fkey"):
            raise NotFound("Service request not found")
        raise
    await db.refresh(bid)
    logger.info("Bid %s on request %s by worker %s", bid.bid_id, request_id, worker.user_id)
    return bid


async def list_bids(
    db: AsyncSession, request_id: uuid.UUID
) -> list[tuple[Bid, bool]]:
    """Bids for a request, newest first, each paired with whether the request is still open.

    No authorization here; the API boundary decides who may look.
    """
    service_request = await get_request(db, request_id)
    is_open = service_request.status == RequestStatus.PENDING

    result = await db.execute(
        select(Bid)
        .where(Bid.request_id == request_id)
        .order_by(Bid.created_at.desc())
        .execution_options(populate_existing=True)
    )
    return [(bid, is_open) for bid in result.scalars().all()]


async def list_worker_bids(db: AsyncSession, worker: Worker) -> list[tuple[Bid, bool]]:
    """A worker's own bids, newest first."""
    result = await db.execute(
        select(Bid, ServiceRequest.status)
        .join(ServiceRequest, ServiceRequest.request_id == Bid.request_id)
        .where(Bid.worker_id == worker.user_id)
        .order_by(Bid.created_at.desc())
    )
    return [(bid, status == RequestStatus.PENDING) for bid, status in result.all()]


async def get_bid(db: AsyncSession, bid_id: uuid.UUID) -> Bid | None:
    result = await db.execute(
        select(Bid)
        .where(Bid.bid_id == bid_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
