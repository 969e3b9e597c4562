"""Domain error taxonomy.

Each error is an ``HTTPException`` so services can raise it directly and the
API layer surfaces it verbatim. ``code`` gives callers a stable identifier
independent of the HTTP status, since both state and uniqueness violations
map to 409.
"""

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError


class DomainError(HTTPException):
    status_code: int = 400
    code: str = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(status_code=self.status_code, detail=detail)


class NotFound(DomainError):
    status_code = 404
    code = "not_found"


class InvalidState(DomainError):
    status_code = 409
    code = "invalid_state"


class Unauthorized(DomainError):
    status_code = 403
    code = "unauthorized"


class Conflict(DomainError):
    status_code = 409
    code = "conflict"


class InvalidArgument(DomainError):
    status_code = 422
    code = "invalid_argument"


def violates_constraint(exc: IntegrityError, constraint: str) -> bool:
    """True if the IntegrityError was raised by the named constraint or unique index."""
    return constraint in str(exc.orig)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )
