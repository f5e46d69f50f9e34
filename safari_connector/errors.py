"""Domain errors raised by services and rendered by a single exception handler.

Routers keep raising ``HTTPException`` for plain request validation; these
classes carry business refusals whose specific reason must reach the caller.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for business-rule failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "domain_error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFound(DomainError):
    """The referenced record does not exist (or is not visible to the caller)."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PreconditionFailed(DomainError):
    """Right transition, wrong actor or wrong supporting state."""

    code = "precondition_failed"

    def __init__(self, detail: str, *, forbidden: bool = False) -> None:
        super().__init__(detail)
        self.forbidden = forbidden
        if forbidden:
            self.status_code = status.HTTP_403_FORBIDDEN


class InvalidTransition(DomainError):
    """The requested move is not an edge of the lifecycle table."""

    status_code = 422
    code = "invalid_transition"

    def __init__(self, source: str, target: str, field: str = "status") -> None:
        super().__init__(f"Invalid {field} transition: {source} -> {target}")
        self.source = source
        self.target = target
        self.field = field


class Conflict(DomainError):
    """A concurrent change won the race for the same record."""

    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


def setup_exception_handlers(app: FastAPI) -> None:
    """Register JSON renderers for ``DomainError`` subclasses and unexpected errors."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        logger.info("%s %s refused: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error", "code": "internal_error"},
        )
