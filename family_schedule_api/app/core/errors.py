"""
Error taxonomy and translation to HTTP responses.

Services raise subclasses of ``ServiceError``; the handlers installed
by ``register_error_handlers`` turn them into a JSON body with a
single ``message`` field and the matching status code.  Store errors
never reach the client as such: services classify them first and
only a safe message crosses the boundary.
"""

import logging
from typing import Iterable, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error."


class ServiceError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthenticated(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized access. Missing user id."


class ValidationError(ServiceError):
    """Missing or invalid request fields, reported as a batch."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, fields: Iterable[str], message: Optional[str] = None) -> None:
        self.fields: List[str] = list(fields)
        super().__init__(message or "Required fields: " + ", ".join(self.fields) + ".")


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists."


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found."


class InternalFailure(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class StoreUnavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Database unavailable."


def require_fields(**fields: object) -> None:
    """Raise ``ValidationError`` naming every field whose value is empty.

    All fields are checked before raising so the client sees the full
    list at once.  ``None``, empty strings and zero count as missing.
    """
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationError(missing)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the offending body fields by name; pydantic's own messages
    # stay in the log.
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        name = ".".join(loc) or "body"
        if name not in fields:
            fields.append(name)
    logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
    return error_response(status.HTTP_400_BAD_REQUEST, "Invalid or missing fields: " + ", ".join(fields) + ".")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)


def register_error_handlers(app: FastAPI) -> None:
    """Install the exception handlers on ``app``."""
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
