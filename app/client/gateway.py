"""
Request Gateway
===============

Async HTTP client for the MindMate API.

Every authenticated call attaches the access token from the
:class:`SessionTokenStore`. When the access token is rejected
(401 ``AUTH_002``) or already past its expiry, the gateway renews the
session with the refresh token and retries the call exactly once; a
second 401 is raised as :class:`Unauthenticated`. Other 401s, such as
a wrong current password, are raised as-is.

Renewal is single-flight: concurrent 401s share one in-flight renewal
task, held in a slot guarded by an :class:`asyncio.Lock`, and all of
them get its result or its exception. A refresh token rejected by the
server clears the store and raises :class:`SessionExpired` to every
waiter; a renewal that times out keeps the session.

Timeouts raise :class:`RequestTimeout` and are never retried.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

import httpx

from app.client.errors import (
    ClientError,
    RequestTimeout,
    SessionExpired,
    Unauthenticated,
    error_from_response,
)
from app.client.session import Session, SessionTokenStore

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class GatewayState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHORIZED = "authorized"
    DISPATCHING = "dispatching"
    RENEWING = "renewing"
    SESSION_EXPIRED = "session_expired"


class RequestGateway:
    """
    Client for ``/api/v1`` with transparent token renewal.

    Args:
        base_url: API root, e.g. ``http://localhost:8000/api/v1``
        store: session store shared with the rest of the client
        timeout: per-request timeout in seconds
        transport: optional httpx transport (``httpx.MockTransport`` in tests)
    """

    def __init__(
        self,
        base_url: str,
        store: Optional[SessionTokenStore] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.store = store if store is not None else SessionTokenStore()
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )
        self._renew_lock = asyncio.Lock()
        self._renewal: Optional[asyncio.Task] = None
        self._state = (
            GatewayState.AUTHORIZED if self.store.get() else GatewayState.UNAUTHENTICATED
        )

    @property
    def state(self) -> GatewayState:
        return self._state

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RequestGateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        access_token: Optional[str] = None,
    ) -> httpx.Response:
        headers = {}
        if access_token is not None:
            headers["Authorization"] = f"Bearer {access_token}"

        try:
            return await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"{method} {path} timed out") from e

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict[str, Any]:
        if response.is_success:
            return response.json()
        raise error_from_response(response)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def _start_session(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._state = GatewayState.AUTHENTICATING
        try:
            body = self._unwrap(await self._send("POST", path, json=payload))
        except ClientError:
            self._state = (
                GatewayState.AUTHORIZED if self.store.get() else GatewayState.UNAUTHENTICATED
            )
            raise

        data = body["data"]
        self.store.set(Session.from_tokens(data["tokens"]))
        self._state = GatewayState.AUTHORIZED
        return data["user"]

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and store the session; returns the user."""
        return await self._start_session(
            "/auth/login",
            {"email": email, "password": password},
        )

    async def register(self, username: str, email: str, password: str) -> dict[str, Any]:
        """Create an account and store its session; returns the user."""
        return await self._start_session(
            "/auth/register",
            {"username": username, "email": email, "password": password},
        )

    async def logout(self) -> None:
        """Revoke the session server-side; the local store is always cleared."""
        try:
            if self.store.get() is not None:
                await self.request("POST", "/auth/logout")
        finally:
            self.store.clear()
            self._state = GatewayState.UNAUTHENTICATED

    def _expire(self) -> SessionExpired:
        self.store.clear()
        self._state = GatewayState.SESSION_EXPIRED
        return SessionExpired("Session expired, please log in again")

    async def _refresh(self, session: Session) -> Session:
        """
        Exchange the refresh token for a new pair.

        Only a rejection by the server ends the session. Timeouts, transport
        failures and 5xx responses propagate and leave the stored session
        in place so a later call can renew again.
        """
        self._state = GatewayState.RENEWING
        try:
            response = await self._send(
                "POST",
                "/auth/refresh-token",
                json={"refresh_token": session.refresh_token},
            )
        except (RequestTimeout, httpx.TransportError):
            self._state = GatewayState.AUTHORIZED
            raise

        if response.is_client_error:
            logger.info("Refresh token rejected with %s", response.status_code)
            raise self._expire() from error_from_response(response)

        try:
            renewed = Session.from_tokens(self._unwrap(response)["data"])
        except ClientError:
            self._state = GatewayState.AUTHORIZED
            raise
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed refresh response: %s", e)
            raise self._expire() from e

        self.store.set(renewed)
        self._state = GatewayState.AUTHORIZED
        return renewed

    async def renew(self, stale: Session) -> Session:
        """
        Replace ``stale`` with a renewed session.

        Returns the current session without a network call when another
        caller already renewed it.

        Raises:
            SessionExpired: no session to renew, or renewal failed
        """
        async with self._renew_lock:
            current = self.store.get()
            if current is None:
                raise SessionExpired("Session expired, please log in again")
            if current.access_token != stale.access_token:
                return current

            if self._renewal is None or self._renewal.done():
                self._renewal = asyncio.create_task(self._refresh(current))
            task = self._renewal

        return await task

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Send an authenticated request and return the response envelope.

        Raises:
            Unauthenticated: not logged in, or still 401 after renewal
            SessionExpired: the session could not be renewed
            RequestTimeout: the request timed out
            ClientError: any other error response
        """
        session = self.store.get()
        if session is None:
            raise Unauthenticated("Not authenticated")

        if session.is_expired():
            session = await self.renew(session)

        self._state = GatewayState.DISPATCHING
        response = await self._send(method, path, json, params, session.access_token)

        if response.status_code == 401:
            error = error_from_response(response)
            # Renew only for a rejected access token (AUTH_002)
            if type(error) is not Unauthenticated:
                self._settle()
                raise error

            renewed = await self.renew(session)
            response = await self._send(method, path, json, params, renewed.access_token)

            if response.status_code == 401:
                self._settle()
                error = error_from_response(response)
                raise Unauthenticated(error.message, code=error.code, status_code=401)

        self._settle()
        return self._unwrap(response)

    def _settle(self) -> None:
        if self._state == GatewayState.DISPATCHING:
            self._state = GatewayState.AUTHORIZED

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> dict[str, Any]:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> dict[str, Any]:
        return await self.request("DELETE", path)
