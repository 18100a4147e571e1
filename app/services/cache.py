"""
Analytics Cache
===============

Best-effort Redis cache for per-user analytics payloads: mood stats,
mood insights and journal stats.

A Redis failure is logged and treated as a miss, so analytics are
rebuilt from the database instead of failing the request. An empty
``REDIS_URL`` disables caching entirely.

Keys are ``cache:{module}:{resource}:{user_id}``. A write to a module's
entries drops every resource derived from that module.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import redis.asyncio as redis
from redis.asyncio import Redis

from app.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

_redis_client: Optional[Redis] = None

# Analytics resources cached per module
DERIVED_RESOURCES: dict[str, tuple[str, ...]] = {
    "mood": ("stats", "insights"),
    "journal": ("stats",),
}


class CacheDisabledError(RuntimeError):
    """Raised by :func:`get_redis` when no ``REDIS_URL`` is configured."""


async def init_redis() -> Redis:
    """
    Connect to Redis and check the connection with a PING.

    Raises:
        CacheDisabledError: caching is not configured
    """
    global _redis_client

    if not settings.cache_enabled:
        raise CacheDisabledError("REDIS_URL is not set")

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            max_connections=50,
            socket_keepalive=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        await client.ping()
        _redis_client = client
        logger.info("Redis connection established")

    return _redis_client


async def get_redis() -> Redis:
    if _redis_client is None:
        return await init_redis()
    return _redis_client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("Redis connection closed")


async def _best_effort(
    action: str,
    target: Any,
    operation: Callable[[Redis], Awaitable[T]],
    fallback: T,
) -> T:
    """Run ``operation`` against Redis, returning ``fallback`` on any failure."""
    try:
        client = await get_redis()
        return await operation(client)
    except CacheDisabledError:
        return fallback
    except Exception as e:
        logger.warning("Cache %s failed for %s: %s", action, target, e)
        return fallback


class CacheManager:
    """JSON values stored with a TTL."""

    TTL_SHORT = 300  # insights
    TTL_MEDIUM = 900  # stats

    @staticmethod
    async def get(key: str) -> Optional[Any]:
        """Return the decoded value, or None on a miss."""

        async def read(client: Redis) -> Optional[Any]:
            value = await client.get(key)
            return None if value is None else json.loads(value)

        return await _best_effort("get", key, read, None)

    @staticmethod
    async def set(key: str, value: Any, ttl: int = TTL_SHORT) -> bool:
        """Store ``value`` for ``ttl`` seconds; False when it was not cached."""

        async def write(client: Redis) -> bool:
            await client.setex(key, ttl, json.dumps(value, default=str))
            return True

        return await _best_effort("set", key, write, False)

    @staticmethod
    async def delete(*keys: str) -> int:
        """Drop ``keys``; returns how many existed."""
        return await _best_effort("delete", keys, lambda client: client.delete(*keys), 0)


def _key(module: str, resource: str, user_id: str) -> str:
    return f"cache:{module}:{resource}:{user_id}"


class CacheKeys:

    @staticmethod
    def mood_stats(user_id: str) -> str:
        return _key("mood", "stats", user_id)

    @staticmethod
    def mood_insights(user_id: str) -> str:
        return _key("mood", "insights", user_id)

    @staticmethod
    def journal_stats(user_id: str) -> str:
        return _key("journal", "stats", user_id)


class CacheInvalidator:
    """Drops cached analytics after a committed write."""

    @staticmethod
    async def on_change(module: str, user_id: str) -> int:
        keys = [_key(module, resource, user_id) for resource in DERIVED_RESOURCES[module]]
        return await CacheManager.delete(*keys)

    @staticmethod
    async def on_mood_change(user_id: str) -> None:
        await CacheInvalidator.on_change("mood", user_id)

    @staticmethod
    async def on_journal_change(user_id: str) -> None:
        await CacheInvalidator.on_change("journal", user_id)
