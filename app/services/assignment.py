"""Assignment coordinator: the request state machine.

All request status changes go through here. Each transition is a guarded
``UPDATE ... WHERE status = <expected>``; the affected row count tells whether
this caller won. A loser sees the request already moved on and gets
``InvalidState``, so at most one bid is ever accepted per request.
"""

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Identity
from app.config import settings
from app.errors import InvalidState, NotFound, Unauthorized
from app.models.bid import Bid, BidStatus
from app.models.request import RequestStatus, ServiceRequest, VALID_TRANSITIONS
from app.services.bid import get_bid
from app.services.request import get_request

logger = logging.getLogger(__name__)


def _assert_transition(current: RequestStatus, target: RequestStatus) -> None:
    """Raise InvalidState if the state transition is not valid."""
    if target not in VALID_TRANSITIONS.get(current, set()):
        raise InvalidState(f"Cannot transition from {current.value} to {target.value}")


async def _transition(
    db: AsyncSession,
    request_id: uuid.UUID,
    current: RequestStatus,
    target: RequestStatus,
    **values: object,
) -> bool:
    """Compare-and-set the request status. Returns False if another writer moved it first."""
    _assert_transition(current, target)
    result = await db.execute(
        update(ServiceRequest)
        .where(
            ServiceRequest.request_id == request_id,
            ServiceRequest.status == current,
        )
        .values(status=target, updated_at=datetime.now(UTC), **values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def accept_bid(
    db: AsyncSession,
    bid_id: uuid.UUID,
    actor: Identity,
    request_id: uuid.UUID | None = None,
) -> tuple[Bid, ServiceRequest]:
    """Requester accepts a bid: the bid wins and its worker is assigned.

    Bid acceptance and request assignment commit together or not at all.
    """
    bid = await get_bid(db, bid_id)
    if bid is None:
        raise NotFound("Bid not found")
    if request_id is not None and bid.request_id != request_id:
        raise NotFound("Bid does not belong to this request")

    service_request = await get_request(db, bid.request_id)
    if service_request.requester_id != actor.user_id:
        raise Unauthorized("Only the requester can accept bids for this request")
    if service_request.status != RequestStatus.PENDING:
        raise InvalidState(
            f"Request is no longer open (status {service_request.status.value})"
        )
    if bid.status != BidStatus.PENDING:
        raise InvalidState(f"Bid is already {bid.status.value}")

    assigned = await _transition(
        db,
        service_request.request_id,
        RequestStatus.PENDING,
        RequestStatus.IN_PROGRESS,
        assigned_worker_id=bid.worker_id,
        budget=bid.amount,
    )
    if not assigned:
        await db.rollback()
        logger.info("accept_bid lost race on request %s", service_request.request_id)
        raise InvalidState("Request is no longer open (another bid was accepted)")

    result = await db.execute(
        update(Bid)
        .where(Bid.bid_id == bid_id, Bid.status == BidStatus.PENDING)
        .values(status=BidStatus.ACCEPTED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        await db.rollback()
        raise InvalidState("Bid is no longer pending")

    if settings.reject_losing_bids:
        await db.execute(
            update(Bid)
            .where(
                Bid.request_id == service_request.request_id,
                Bid.bid_id != bid_id,
                Bid.status == BidStatus.PENDING,
            )
            .values(status=BidStatus.REJECTED)
            .execution_options(synchronize_session=False)
        )

    try:
        await db.commit()
    except IntegrityError:
        # uq_bids_one_accepted_per_request backstop
        await db.rollback()
        raise InvalidState("Request already has an accepted bid")

    await db.refresh(bid)
    await db.refresh(service_request)
    logger.info(
        "Bid %s accepted; request %s assigned to worker %s",
        bid_id, service_request.request_id, bid.worker_id,
    )
    return bid, service_request


async def complete_request(
    db: AsyncSession, request_id: uuid.UUID, actor: Identity
) -> ServiceRequest:
    """Requester or assigned worker marks the job done.

    Completing twice is an error, not a no-op, so every transition is recorded once.
    """
    service_request = await get_request(db, request_id)
    if not service_request.is_participant(actor.user_id):
        raise Unauthorized("Only the requester or the assigned worker can complete this request")

    completed = await _transition(
        db, request_id, service_request.status, RequestStatus.COMPLETED
    )
    if not completed:
        await db.rollback()
        await db.refresh(service_request)
        raise InvalidState(
            f"Cannot transition from {service_request.status.value} to completed"
        )

    await db.commit()
    await db.refresh(service_request)
    logger.info("Request %s completed by %s", request_id, actor.user_id)
    return service_request
