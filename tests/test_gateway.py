"""
Request Gateway Tests
=====================

Client-side token renewal against an ``httpx.MockTransport`` server.
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.client import (
    DuplicateIdentity,
    GatewayState,
    InvalidCredentials,
    NotAuthorized,
    RequestGateway,
    RequestTimeout,
    ServerError,
    Session,
    SessionExpired,
    SessionTokenStore,
    Unauthenticated,
    UpstreamUnavailable,
    ValidationFailed,
)

BASE_URL = "http://test/api/v1"


def _error(status: int, code: str, message: str = "error", field: str | None = None):
    return httpx.Response(
        status,
        json={"success": False, "error": {"code": code, "message": message, "field": field}},
    )


def _tokens(access: str, refresh: str) -> dict:
    return {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "bearer",
        "expires_in": 900,
    }


class FakeServer:
    """Accepts one access token at a time and counts refresh calls."""

    def __init__(self, valid_access="new", refresh_ok=True, resource_status=None):
        self.valid_access = valid_access
        self.refresh_ok = refresh_ok
        self.resource_status = resource_status
        self.refresh_calls = 0
        self.resource_calls = 0

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/refresh-token"):
            self.refresh_calls += 1
            await asyncio.sleep(0.01)
            if not self.refresh_ok:
                return _error(401, "AUTH_006", "Session expired, please log in again")
            body = json.loads(request.content)
            assert body == {"refresh_token": "refresh-1"}
            return httpx.Response(200, json={"success": True, "data": _tokens("new", "refresh-2")})

        self.resource_calls += 1
        if self.resource_status is not None:
            return _error(self.resource_status, "X", "nope")
        if request.headers.get("Authorization") != f"Bearer {self.valid_access}":
            return _error(401, "AUTH_002", "Not authenticated")
        return httpx.Response(200, json={"success": True, "data": {"ok": True}})


def _gateway(server, session=Session("old", "refresh-1")) -> RequestGateway:
    return RequestGateway(
        BASE_URL,
        store=SessionTokenStore(session),
        transport=httpx.MockTransport(server),
    )


@pytest.mark.asyncio
async def test_valid_token_passes_through():
    server = FakeServer(valid_access="old")

    async with _gateway(server) as gateway:
        body = await gateway.get("/mood")

    assert body["data"] == {"ok": True}
    assert server.refresh_calls == 0


@pytest.mark.asyncio
async def test_concurrent_401s_share_one_renewal():
    server = FakeServer()

    async with _gateway(server) as gateway:
        results = await asyncio.gather(*(gateway.get(f"/mood/{i}") for i in range(5)))

        assert server.refresh_calls == 1
        assert all(r["data"] == {"ok": True} for r in results)
        session = gateway.store.get()
        assert (session.access_token, session.refresh_token) == ("new", "refresh-2")
        assert gateway.state == GatewayState.AUTHORIZED


@pytest.mark.asyncio
async def test_failed_renewal_expires_every_waiter():
    server = FakeServer(refresh_ok=False)

    async with _gateway(server) as gateway:
        results = await asyncio.gather(
            *(gateway.get("/mood") for _ in range(4)),
            return_exceptions=True,
        )

        assert server.refresh_calls == 1
        assert all(isinstance(r, SessionExpired) for r in results)
        assert gateway.store.get() is None
        assert gateway.state == GatewayState.SESSION_EXPIRED

        with pytest.raises(Unauthenticated):
            await gateway.get("/mood")


@pytest.mark.asyncio
async def test_second_401_is_not_retried():
    server = FakeServer(valid_access="never")

    async with _gateway(server) as gateway:
        with pytest.raises(Unauthenticated) as exc_info:
            await gateway.get("/mood")

    assert type(exc_info.value) is Unauthenticated
    assert server.refresh_calls == 1
    assert server.resource_calls == 2


@pytest.mark.asyncio
async def test_not_logged_in():
    server = FakeServer()

    async with _gateway(server, session=None) as gateway:
        with pytest.raises(Unauthenticated):
            await gateway.get("/mood")

    assert server.resource_calls == 0


@pytest.mark.asyncio
async def test_timeout_is_not_retried():
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        raise httpx.ReadTimeout("timed out", request=request)

    gateway = RequestGateway(
        BASE_URL,
        store=SessionTokenStore(Session("old", "refresh-1")),
        transport=httpx.MockTransport(handler),
    )
    async with gateway:
        with pytest.raises(RequestTimeout):
            await gateway.get("/mood")

    assert calls == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [
        (400, ValidationFailed),
        (403, NotAuthorized),
        (409, DuplicateIdentity),
        (500, ServerError),
        (502, ServerError),
        (503, UpstreamUnavailable),
    ],
)
async def test_error_mapping(status, error):
    server = FakeServer(resource_status=status)

    async with _gateway(server) as gateway:
        with pytest.raises(error) as exc_info:
            await gateway.get("/mood")

    assert exc_info.value.status_code == status
    assert exc_info.value.message == "nope"
    assert server.refresh_calls == 0


@pytest.mark.asyncio
async def test_login_stores_session():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/v1/auth/login"
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"user": {"username": "alice"}, "tokens": _tokens("a1", "r1")},
            },
        )

    gateway = RequestGateway(BASE_URL, transport=httpx.MockTransport(handler))
    async with gateway:
        user = await gateway.login("alice@example.com", "secret-password")

    assert user == {"username": "alice"}
    assert gateway.store.get().access_token == "a1"
    assert gateway.state == GatewayState.AUTHORIZED


@pytest.mark.asyncio
async def test_login_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return _error(401, "AUTH_001", "Invalid credentials")

    gateway = RequestGateway(BASE_URL, transport=httpx.MockTransport(handler))
    async with gateway:
        with pytest.raises(InvalidCredentials):
            await gateway.login("alice@example.com", "wrong")

    assert gateway.store.get() is None
    assert gateway.state == GatewayState.UNAUTHENTICATED


@pytest.mark.asyncio
async def test_logout_clears_store_even_on_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return _error(500, "INTERNAL_ERROR")

    gateway = RequestGateway(
        BASE_URL,
        store=SessionTokenStore(Session("old", "refresh-1")),
        transport=httpx.MockTransport(handler),
    )
    async with gateway:
        with pytest.raises(ServerError):
            await gateway.logout()

    assert gateway.store.get() is None


@pytest.mark.asyncio
async def test_wrong_current_password_is_not_renewed():
    server = FakeServer(valid_access="old")
    calls = {"put": 0}

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/updatepassword"):
            calls["put"] += 1
            return _error(401, "AUTH_001", "Password is incorrect")
        return await server(request)

    gateway = RequestGateway(
        BASE_URL,
        store=SessionTokenStore(Session("old", "refresh-1")),
        transport=httpx.MockTransport(handler),
    )
    async with gateway:
        with pytest.raises(InvalidCredentials):
            await gateway.put(
                "/auth/updatepassword",
                json={"current_password": "nope", "new_password": "long-enough-pw"},
            )

        assert gateway.store.get() == Session("old", "refresh-1")
        assert gateway.state == GatewayState.AUTHORIZED

    assert calls["put"] == 1
    assert server.refresh_calls == 0


@pytest.mark.asyncio
async def test_renewal_timeout_keeps_session():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/refresh-token"):
            raise httpx.ReadTimeout("timed out", request=request)
        return _error(401, "AUTH_002", "Not authenticated")

    gateway = RequestGateway(
        BASE_URL,
        store=SessionTokenStore(Session("old", "refresh-1")),
        transport=httpx.MockTransport(handler),
    )
    async with gateway:
        with pytest.raises(RequestTimeout):
            await gateway.get("/mood")

        assert gateway.store.get() == Session("old", "refresh-1")
        assert gateway.state != GatewayState.SESSION_EXPIRED


@pytest.mark.asyncio
async def test_renewal_server_error_keeps_session():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/auth/refresh-token"):
            return _error(500, "INTERNAL_ERROR")
        return _error(401, "AUTH_002", "Not authenticated")

    gateway = RequestGateway(
        BASE_URL,
        store=SessionTokenStore(Session("old", "refresh-1")),
        transport=httpx.MockTransport(handler),
    )
    async with gateway:
        with pytest.raises(ServerError):
            await gateway.get("/mood")

        assert gateway.store.get() is not None


@pytest.mark.asyncio
async def test_expired_access_token_renewed_before_sending():
    server = FakeServer()
    stale = Session("old", "refresh-1", datetime(2020, 1, 1, tzinfo=timezone.utc))

    async with _gateway(server, session=stale) as gateway:
        body = await gateway.get("/mood")

    assert body["data"] == {"ok": True}
    assert server.refresh_calls == 1
    assert server.resource_calls == 1


def test_session_expiry():
    now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    session = Session.from_tokens(_tokens("a", "r"), now=now)

    assert not session.is_expired(now)
    assert session.is_expired(now + timedelta(seconds=900))
    assert not Session("a", "r").is_expired(now)
