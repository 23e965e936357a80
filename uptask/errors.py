"""
Domain errors and their mapping to HTTP responses.

Core operations raise these exceptions instead of ``HTTPException`` so they can
be called without a request in flight. The handlers registered here translate
them into the same ``{"detail": ...}`` body FastAPI uses for its own errors.
"""

import logging

from fastapi import FastAPI, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for domain errors."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"

    def __init__(self, message: str = None, *, headers: dict = None):
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)


class BadRequestError(AppError):
    default_message = "Bad request"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class AlreadyMemberError(ConflictError):
    default_message = "User is already a member of this project"


class NotAMemberError(ConflictError):
    default_message = "User is not a collaborator of this project"


class EmailTakenError(ConflictError):
    default_message = "Email already registered"


class AccountNotConfirmedError(UnauthorizedError):
    default_message = "Account not confirmed. A new confirmation email has been sent"


def register_exception_handlers(app: FastAPI) -> None:
    """Register domain error handlers with the provided FastAPI app."""

    @app.exception_handler(AppError)
    async def _handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        log = logger.info if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR else logger.error
        log(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
            headers=exc.headers,
        )

    @app.exception_handler(IntegrityError)
    async def _handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.error(f"Database integrity error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Database integrity violation"},
        )
