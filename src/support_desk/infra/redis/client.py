"""Redis client for support_desk.

This module provides an optional async Redis client wrapper.
Redis only backs caches; if it is not configured or unreachable, every
operation degrades to a cache miss.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from support_desk.config import RedisSettings
from support_desk.logging import get_logger
from support_desk.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from redis.asyncio import Redis

__all__ = [
    "RedisClient",
]

logger = get_logger(__name__)

get_async_redis = lazy_import("redis.asyncio", "Redis")

T = TypeVar("T")


class RedisClient:
    """Async Redis client wrapper (optional).

    Keys are namespaced with ``key_prefix`` so several deployments can
    share one Redis database.

    Example:
        client = RedisClient(settings)
        if await client.connect():
            await client.set("blob_size:abc", "1024", ttl=3600)
        await client.disconnect()
    """

    def __init__(self, settings: RedisSettings, key_prefix: str = "support_desk:") -> None:
        """Initialize client with settings.

        Args:
            settings: Redis connection settings
            key_prefix: Prefix added to every key
        """
        self._settings = settings
        self._key_prefix = key_prefix
        self._redis: "Redis | None" = None
        self._connected = False

    @property
    def is_enabled(self) -> bool:
        """Check if Redis is enabled in configuration."""
        return self._settings.enabled and self._settings.url is not None

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> bool:
        """Initialize connection to Redis.

        Returns:
            True if connected successfully, False otherwise
        """
        if self._redis is not None:
            return self._connected

        if not self.is_enabled:
            logger.info("redis_disabled", reason="not configured")
            return False

        try:
            Redis = get_async_redis()  # noqa: N806
            self._redis = Redis.from_url(self._settings.url, decode_responses=True)
            await self._redis.ping()
        except Exception as e:
            logger.warning(
                "redis_connection_failed",
                error=str(e),
                reason="Redis unavailable, caching disabled",
            )
            self._redis = None
            self._connected = False
            return False

        self._connected = True
        logger.info("connected_to_redis")
        return True

    async def disconnect(self) -> None:
        """Close connection to Redis."""
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self._connected = False
            logger.info("disconnected_from_redis")

    async def get(self, key: str) -> str | None:
        """Cached value, None on a miss or when Redis is unavailable."""
        return await self._run("get", key, lambda r, k: r.get(k), None)

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """Store a value with an optional TTL in seconds."""
        return bool(await self._run("set", key, lambda r, k: r.set(k, value, ex=ttl), False))

    async def delete(self, key: str) -> bool:
        """Remove a key; True if it existed."""
        return bool(await self._run("delete", key, lambda r, k: r.delete(k), 0))

    async def _run(
        self,
        op: str,
        key: str,
        call: Callable[[Any, str], Awaitable[Any]],
        default: T,
    ) -> Any | T:
        """Run one command; connection errors become ``default``."""
        if not self._connected or self._redis is None:
            return default
        try:
            result = await call(self._redis, f"{self._key_prefix}{key}")
        except Exception as e:
            logger.debug("redis_command_failed", op=op, key=key, error=str(e))
            return default
        return result

    async def __aenter__(self) -> "RedisClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()
