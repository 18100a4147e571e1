"""
Session Token Store
===================

Client-side holder of the current token pair.

A :class:`Session` is immutable; renewal and login replace it wholesale
with a single assignment, so readers never see a half-updated pair.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from app.utils.helpers import utc_now


@dataclass(frozen=True)
class Session:
    access_token: str
    refresh_token: str
    access_token_expiry: Optional[datetime] = None

    @classmethod
    def from_tokens(
        cls,
        tokens: Mapping[str, Any],
        now: Optional[datetime] = None,
    ) -> "Session":
        """Build a session from a ``TokenResponse`` payload."""
        expiry = None
        expires_in = tokens.get("expires_in")
        if expires_in is not None:
            expiry = (now or utc_now()) + timedelta(seconds=int(expires_in))

        return cls(
            access_token=tokens["access_token"],
            refresh_token=tokens["refresh_token"],
            access_token_expiry=expiry,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.access_token_expiry is None:
            return False
        return (now or utc_now()) >= self.access_token_expiry


class SessionTokenStore:
    """In-memory store of the current :class:`Session`."""

    def __init__(self, session: Optional[Session] = None):
        self._session = session

    def get(self) -> Optional[Session]:
        return self._session

    def set(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None
