"""Application error taxonomy and the FastAPI handlers that render it."""

import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = "Internal server error"


class AppError(Exception):
    """Base error carrying an HTTP status and a short client-facing message."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = GENERIC_ERROR_MESSAGE
    # Internal errors are logged in full and hidden from the caller
    internal: bool = False

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentials(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid nickname or password"


class Unauthorized(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authenticated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Conflict(AppError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class StorageError(AppError):
    """Backing store failure (connection, constraint, timeout)."""
    internal = True


class SigningError(AppError):
    """Token signing infrastructure failure."""
    internal = True


class HashingError(AppError):
    """Password hashing library failure or malformed stored hash."""
    internal = True


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.internal:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            exc_info=exc.__cause__ or exc,
        )
        message = GENERIC_ERROR_MESSAGE
    else:
        message = exc.message

    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the AppError handler on a FastAPI application."""
    app.add_exception_handler(AppError, app_error_handler)
