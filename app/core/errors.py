"""
Error Handling
==============

Error codes, the application exception taxonomy and the handlers that
render every failure as ``{"success": false, "error": {code, message, field?}}``.
"""

import logging
from typing import Any, Optional

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ErrorCodes:
    """Codes carried in ``error.code``."""

    AUTH_INVALID_CREDENTIALS = "AUTH_001"
    AUTH_NOT_AUTHENTICATED = "AUTH_002"
    AUTH_EMAIL_EXISTS = "AUTH_004"
    AUTH_USERNAME_EXISTS = "AUTH_005"
    AUTH_SESSION_EXPIRED = "AUTH_006"

    FORBIDDEN = "FORBIDDEN"

    MOOD_NOT_FOUND = "MOOD_001"
    JOURNAL_NOT_FOUND = "JOURNAL_001"

    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"

    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    HTTP_ERROR = "HTTP_ERROR"


def error_body(code: str, message: str, field: Optional[str] = None) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if field:
        error["field"] = field
    return {"success": False, "error": error}


# =============================================================================
# Exceptions
# =============================================================================

class AppException(HTTPException):
    """
    Base for domain errors.

    Subclasses pick the HTTP status and the default code and message;
    any of them can be overridden per raise.
    """

    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = ErrorCodes.INTERNAL_ERROR
    default_message = "An unexpected error occurred"
    auth_challenge = False

    def __init__(
        self,
        message: Optional[str] = None,
        code: Optional[str] = None,
        field: Optional[str] = None,
    ):
        self.code = code or self.default_code
        self.message = message or self.default_message
        self.field = field

        super().__init__(
            status_code=self.http_status,
            detail=error_body(self.code, self.message, field)["error"],
            headers={"WWW-Authenticate": "Bearer"} if self.auth_challenge else None,
        )


class ValidationError(AppException):
    http_status = status.HTTP_400_BAD_REQUEST
    default_code = ErrorCodes.VALIDATION_ERROR
    default_message = "Validation error"


class AuthenticationError(AppException):
    """Missing, malformed or revoked access token."""

    http_status = status.HTTP_401_UNAUTHORIZED
    default_code = ErrorCodes.AUTH_NOT_AUTHENTICATED
    default_message = "Not authenticated"
    auth_challenge = True


class InvalidCredentialsError(AuthenticationError):
    default_code = ErrorCodes.AUTH_INVALID_CREDENTIALS
    default_message = "Invalid credentials"


class SessionExpiredError(AuthenticationError):
    """Refresh token is no longer valid; the client must log in again."""

    default_code = ErrorCodes.AUTH_SESSION_EXPIRED
    default_message = "Session expired, please log in again"


class ForbiddenError(AppException):
    http_status = status.HTTP_403_FORBIDDEN
    default_code = ErrorCodes.FORBIDDEN
    default_message = "Access denied"


class NotFoundError(AppException):
    http_status = status.HTTP_404_NOT_FOUND
    default_code = ErrorCodes.NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppException):
    """Unique email or username already taken."""

    http_status = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class ServiceUnavailableError(AppException):
    """The completion service failed or is not configured."""

    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = ErrorCodes.UPSTREAM_UNAVAILABLE
    default_message = "Service temporarily unavailable"


# =============================================================================
# Handlers
# =============================================================================

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.message, exc.field),
        headers=exc.headers,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Framework errors such as unknown routes or wrong methods."""
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(ErrorCodes.HTTP_ERROR, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Request validation failures.

    Reported as 400 with the first offending field, the same shape as a
    :class:`ValidationError` raised by the services.
    """
    errors = exc.errors() if hasattr(exc, "errors") else []
    field = None
    message = str(exc) or "Validation error"

    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or None
        message = first.get("msg", "Validation error")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(ErrorCodes.VALIDATION_ERROR, message, field),
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(ErrorCodes.INTERNAL_ERROR, "An unexpected error occurred"),
    )


def setup_exception_handlers(app) -> None:
    """Register the envelope handlers on ``app``."""
    from fastapi.exceptions import RequestValidationError
    from pydantic import ValidationError as PydanticValidationError
    from starlette.exceptions import HTTPException as StarletteHTTPException

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
