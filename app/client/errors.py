"""
Client Errors
=============

Exceptions raised by :class:`app.client.gateway.RequestGateway`,
mirroring the server's error envelope.
"""

from typing import Optional

import httpx


class ClientError(Exception):
    """Base error for failed API calls."""

    status_code: Optional[int] = None

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        field: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.field = field
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(ClientError):
    status_code = 400


class Unauthenticated(ClientError):
    status_code = 401


class InvalidCredentials(Unauthenticated):
    pass


class SessionExpired(Unauthenticated):
    """The session could not be renewed; the user has to log in again."""


class NotAuthorized(ClientError):
    status_code = 403


class NotFound(ClientError):
    status_code = 404


class DuplicateIdentity(ClientError):
    status_code = 409


class ServerError(ClientError):
    status_code = 500


class UpstreamUnavailable(ClientError):
    status_code = 503


class RequestTimeout(ClientError):
    """The request did not complete within the configured timeout."""


_BY_STATUS: dict[int, type[ClientError]] = {
    400: ValidationFailed,
    401: Unauthenticated,
    403: NotAuthorized,
    404: NotFound,
    409: DuplicateIdentity,
    503: UpstreamUnavailable,
}

_BY_CODE: dict[str, type[ClientError]] = {
    "AUTH_001": InvalidCredentials,
    "AUTH_006": SessionExpired,
}


def error_from_response(response: httpx.Response) -> ClientError:
    """Build the exception matching an error response."""
    code = None
    field = None
    message = response.reason_phrase or f"HTTP {response.status_code}"

    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        code = error.get("code")
        field = error.get("field")
        message = error.get("message") or message

    cls = _BY_CODE.get(code or "")
    if cls is None:
        cls = _BY_STATUS.get(response.status_code)
    if cls is None:
        cls = ServerError if response.status_code >= 500 else ClientError

    return cls(message, code=code, field=field, status_code=response.status_code)
