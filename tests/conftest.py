"""
Test Configuration
==================

Shared fixtures: an in-memory SQLite database per test, an httpx client
bound to the ASGI app, and helpers to register users.
"""

import os
import uuid

# Configure the app before anything imports app.config
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_URL"] = ""
os.environ["GOOGLE_GEMINI_API_KEY"] = ""
os.environ["JWT_SECRET"] = "test-secret-key-that-is-at-least-32-characters"

from typing import AsyncGenerator, Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import User, UserRole

DEFAULT_PASSWORD = "correct-horse-battery"

RegisterFn = Callable[..., Awaitable[dict]]


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with get_db bound to the test database."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def register(client: AsyncClient) -> RegisterFn:
    """
    Register a user through the API.

    Returns the response ``data`` (``user`` and ``tokens``) plus a ready
    ``headers`` dict with the bearer token.
    """

    async def _register(
        username: str = "alice",
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> dict:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        data["headers"] = {"Authorization": f"Bearer {data['tokens']['access_token']}"}
        return data

    return _register


@pytest_asyncio.fixture
async def make_admin(session_factory) -> Callable[[str], Awaitable[None]]:
    """Promote a registered user to admin."""

    async def _make_admin(user_id: str) -> None:
        async with session_factory() as session:
            await session.execute(
                update(User)
                .where(User.user_id == uuid.UUID(user_id))
                .values(role=UserRole.ADMIN)
            )
            await session.commit()

    return _make_admin
