"""
Error Envelope Tests
====================

Domain exceptions rendered through the registered handlers.
"""

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from app.core.errors import (
    AuthenticationError,
    ConflictError,
    ErrorCodes,
    InvalidCredentialsError,
    ServiceUnavailableError,
    setup_exception_handlers,
)


def _app() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise ConflictError(
            "Email already registered",
            code=ErrorCodes.AUTH_EMAIL_EXISTS,
            field="email",
        )

    @app.get("/auth")
    async def auth():
        raise AuthenticationError()

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database on fire")

    return app


@pytest_asyncio.fixture
async def error_client():
    transport = ASGITransport(app=_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def test_defaults_come_from_the_class():
    error = InvalidCredentialsError()

    assert error.status_code == 401
    assert error.code == ErrorCodes.AUTH_INVALID_CREDENTIALS
    assert error.message == "Invalid credentials"
    assert error.headers == {"WWW-Authenticate": "Bearer"}


def test_overrides_per_raise():
    error = ServiceUnavailableError("Chat is not configured")

    assert error.status_code == 503
    assert error.code == ErrorCodes.UPSTREAM_UNAVAILABLE
    assert error.message == "Chat is not configured"
    assert error.headers is None


@pytest.mark.asyncio
async def test_conflict_envelope_carries_field(error_client: AsyncClient):
    response = await error_client.get("/conflict")

    assert response.status_code == 409
    assert response.json() == {
        "success": False,
        "error": {
            "code": "AUTH_004",
            "message": "Email already registered",
            "field": "email",
        },
    }


@pytest.mark.asyncio
async def test_auth_error_sets_challenge_header(error_client: AsyncClient):
    response = await error_client.get("/auth")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"
    assert "field" not in response.json()["error"]


@pytest.mark.asyncio
async def test_unhandled_error_is_hidden(error_client: AsyncClient):
    response = await error_client.get("/boom")

    assert response.status_code == 500
    body = response.json()
    assert body["error"]["code"] == ErrorCodes.INTERNAL_ERROR
    assert "fire" not in body["error"]["message"]
