"""Caller identity dependency for FastAPI.

Authentication happens upstream; the gateway forwards the resolved user id in
``settings.identity_header``. Here the id is looked up and turned into one of
the ``Identity`` variants, so services receive the caller's role explicitly.
"""

import uuid
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.errors import Unauthorized
from app.models.user import User, UserRole


@dataclass(frozen=True)
class Requester:
    user_id: uuid.UUID
    role: UserRole = UserRole.REQUESTER


@dataclass(frozen=True)
class Worker:
    user_id: uuid.UUID
    role: UserRole = UserRole.WORKER


@dataclass(frozen=True)
class Admin:
    user_id: uuid.UUID
    role: UserRole = UserRole.ADMIN


Identity = Requester | Worker | Admin

_VARIANTS: dict[UserRole, type[Requester] | type[Worker] | type[Admin]] = {
    UserRole.REQUESTER: Requester,
    UserRole.WORKER: Worker,
    UserRole.ADMIN: Admin,
}


def identity_for(user: User) -> Identity:
    return _VARIANTS[user.role](user_id=user.user_id)


async def resolve_identity(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Identity:
    """Resolve the forwarded user id into an Identity."""
    raw = request.headers.get(settings.identity_header)
    if not raw:
        raise HTTPException(status_code=403, detail="Missing identity header")

    try:
        user_id = uuid.UUID(raw)
    except ValueError:
        raise HTTPException(status_code=403, detail="Malformed identity header")

    result = await db.execute(select(User).where(User.user_id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=403, detail="User not found")

    return identity_for(user)


async def require_requester(identity: Identity = Depends(resolve_identity)) -> Requester:
    if not isinstance(identity, Requester):
        raise Unauthorized("Only requesters can perform this action")
    return identity


async def require_worker(identity: Identity = Depends(resolve_identity)) -> Worker:
    if not isinstance(identity, Worker):
        raise Unauthorized("Only workers can perform this action")
    return identity


async def require_admin(identity: Identity = Depends(resolve_identity)) -> Admin:
    if not isinstance(identity, Admin):
        raise Unauthorized("Admin access required")
    return identity
