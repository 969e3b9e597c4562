"""Service request business logic: posting, browsing, editing and withdrawal."""

import logging
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.middleware import Identity, Requester, Worker
from app.errors import InvalidArgument, InvalidState, NotFound, Unauthorized
from app.models.request import RequestStatus, ServiceRequest
from app.schemas.request import RequestCreate, RequestUpdate

logger = logging.getLogger(__name__)


async def get_request(db: AsyncSession, request_id: uuid.UUID) -> ServiceRequest:
    result = await db.execute(
        select(ServiceRequest)
        .where(ServiceRequest.request_id == request_id)
        .execution_options(populate_existing=True)
    )
    service_request = result.scalar_one_or_none()
    if service_request is None:
        raise NotFound("Service request not found")
    return service_request


async def create_request(
    db: AsyncSession, requester: Identity, data: RequestCreate
) -> ServiceRequest:
    """Requester posts a new request, open for bids."""
    if not isinstance(requester, Requester):
        raise Unauthorized("Only requesters can post service requests")

    service_request = ServiceRequest(
        request_id=uuid.uuid4(),
        requester_id=requester.user_id,
        service_type=data.service_type,
        description=data.description,
        location=data.location,
        scheduled_date=data.scheduled_date,
        scheduled_time=data.scheduled_time,
        phone=data.phone,
        budget=data.budget,
        status=RequestStatus.PENDING,
    )
    db.add(service_request)
    await db.commit()
    await db.refresh(service_request)
    logger.info("Request %s posted by %s", service_request.request_id, requester.user_id)
    return service_request


async def list_my_requests(db: AsyncSession, requester: Requester) -> list[ServiceRequest]:
    result = await db.execute(
        select(ServiceRequest)
        .where(ServiceRequest.requester_id == requester.user_id)
        .order_by(ServiceRequest.created_at.desc())
    )
    return list(result.scalars().all())


async def list_open_requests(
    db: AsyncSession, limit: int = 50, offset: int = 0
) -> list[ServiceRequest]:
    """Requests still accepting bids, newest first."""
    result = await db.execute(
        select(ServiceRequest)
        .where(ServiceRequest.status == RequestStatus.PENDING)
        .order_by(ServiceRequest.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def list_assigned_jobs(db: AsyncSession, worker: Worker) -> list[ServiceRequest]:
    result = await db.execute(
        select(ServiceRequest)
        .where(ServiceRequest.assigned_worker_id == worker.user_id)
        .order_by(ServiceRequest.updated_at.desc())
    )
    return list(result.scalars().all())


async def delete_request(
    db: AsyncSession, request_id: uuid.UUID, actor: Identity
) -> None:
    """Withdraw a request. Only the owner, and only while nobody is assigned.

    Assigned or completed requests are kept so reviews and ratings stay
    traceable to the job they were written for.
    """
    service_request = await get_request(db, request_id)
    if service_request.requester_id != actor.user_id:
        raise Unauthorized("Only the requester can delete this request")

    if service_request.status != RequestStatus.PENDING:
        raise InvalidState(
            f"Cannot delete a request in status {service_request.status.value}"
        )

    # Bids go with it (ON DELETE CASCADE). The status guard loses to a concurrent accept_bid.
    result = await db.execute(
        delete(ServiceRequest)
        .where(
            ServiceRequest.request_id == request_id,
            ServiceRequest.status == RequestStatus.PENDING,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise InvalidState("Request was assigned while being deleted")
    await db.commit()
    logger.info("Request %s deleted by %s", request_id, actor.user_id)


async def update_request(
    db: AsyncSession, request_id: uuid.UUID, actor: Identity, data: RequestUpdate
) -> ServiceRequest:
    """Owner edits the details of a request that nobody has been assigned to yet."""
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise InvalidArgument("No fields to update")

    service_request = await get_request(db, request_id)
    if service_request.requester_id != actor.user_id:
        raise Unauthorized("Only the requester can edit this request")
    if service_request.status != RequestStatus.PENDING:
        raise InvalidState(
            f"Cannot edit a request in status {service_request.status.value}"
        )

    # Bids were placed against these details; the guard keeps an accepted bid's terms fixed.
    result = await db.execute(
        update(ServiceRequest)
        .where(
            ServiceRequest.request_id == request_id,
            ServiceRequest.status == RequestStatus.PENDING,
        )
        .values(**changes)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        raise InvalidState("Request was assigned while being edited")
    await db.commit()
    logger.info("Request %s edited by %s: %s", request_id, actor.user_id, sorted(changes))
    return await get_request(db, request_id)
