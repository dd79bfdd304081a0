"""
Domain exceptions and their HTTP translation.

Service functions raise the exceptions below; they never build HTTP
responses themselves.  ``register_exception_handlers`` installs one
FastAPI handler per family so the router layer stays free of
try/except blocks.  Uniqueness violations are not pre-checked in the
services: the database's ``IntegrityError`` propagates unchanged and is
translated to 409 here.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

logger = logging.getLogger(__name__)


class BlogAPIError(Exception):
    """Base class for errors that map onto an HTTP status code."""

    status_code: int = HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal Server Error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(BlogAPIError):
    status_code = HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class PermissionDeniedError(BlogAPIError):
    status_code = HTTP_403_FORBIDDEN
    default_detail = "Permission denied"


class AuthenticationRequiredError(BlogAPIError):
    status_code = HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required"


class InvalidCredentialsError(BlogAPIError):
    # Unknown email and wrong password share one message so the response
    # does not reveal which of the two failed.
    status_code = HTTP_401_UNAUTHORIZED
    default_detail = "Invalid email or password"


class AccountDeactivatedError(BlogAPIError):
    status_code = HTTP_403_FORBIDDEN
    default_detail = "Account is deactivated"


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def blog_api_error_handler(request: Request, exc: BlogAPIError) -> JSONResponse:
    logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc.detail,
    )
    headers = None
    if exc.status_code == HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(
        "Constraint violation on %s %s: %s",
        request.method,
        request.url.path,
        exc.orig,
    )
    return JSONResponse(
        status_code=HTTP_409_CONFLICT,
        content={"detail": "Request conflicts with existing data"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BlogAPIError, blog_api_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
