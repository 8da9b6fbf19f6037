"""Redis connection backing the statistic response cache.

Every operation degrades to a miss: a cache that cannot be reached only
costs a recomputation against MongoDB, never a failed statistic.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from chat_stats.config import RedisSettings
from chat_stats.logging import get_logger
from chat_stats.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from redis.asyncio import Redis

__all__ = [
    "RedisClient",
]

logger = get_logger(__name__)

get_async_redis = lazy_import("redis.asyncio", "Redis")

T = TypeVar("T")


class RedisClient:
    """String get/set over ``redis.asyncio`` for cached statistic JSON."""

    def __init__(self, settings: RedisSettings) -> None:
        self._settings = settings
        self._redis: "Redis | None" = None

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    async def connect(self) -> bool:
        """Open and ping the connection.

        Returns:
            False when caching is disabled, unconfigured or unreachable
        """
        if self._redis is not None:
            return True
        if not self._settings.enabled or self._settings.url is None:
            logger.info("stats_cache_disabled", reason="not configured")
            return False

        redis = get_async_redis().from_url(self._settings.url, decode_responses=True)
        try:
            await redis.ping()
        except Exception as e:
            await redis.aclose()
            logger.warning("redis_connection_failed", error=str(e))
            return False

        self._redis = redis
        logger.info("connected_to_redis", ttl_seconds=self._settings.ttl_seconds)
        return True

    async def disconnect(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            logger.info("disconnected_from_redis")

    async def _run(
        self,
        operation: str,
        call: Callable[["Redis"], Awaitable[T]],
        default: T,
        **context: Any,
    ) -> T:
        if self._redis is None:
            return default
        try:
            return await call(self._redis)
        except Exception as e:
            logger.warning("redis_operation_failed", operation=operation, error=str(e), **context)
            return default

    async def ping(self) -> bool:
        return bool(await self._run("ping", lambda r: r.ping(), False))

    async def get(self, key: str) -> str | None:
        return await self._run("get", lambda r: r.get(key), None, key=key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        """Store ``value`` under ``key`` expiring after ``ex`` seconds."""
        return bool(await self._run("set", lambda r: r.set(key, value, ex=ex), False, key=key))
