"""
MindMate API client.
"""

from app.client.errors import (
    ClientError,
    DuplicateIdentity,
    InvalidCredentials,
    NotAuthorized,
    NotFound,
    RequestTimeout,
    ServerError,
    SessionExpired,
    Unauthenticated,
    UpstreamUnavailable,
    ValidationFailed,
)
from app.client.gateway import GatewayState, RequestGateway
from app.client.session import Session, SessionTokenStore

__all__ = [
    "ClientError",
    "DuplicateIdentity",
    "GatewayState",
    "InvalidCredentials",
    "NotAuthorized",
    "NotFound",
    "RequestGateway",
    "RequestTimeout",
    "ServerError",
    "Session",
    "SessionExpired",
    "SessionTokenStore",
    "Unauthenticated",
    "UpstreamUnavailable",
    "ValidationFailed",
]
