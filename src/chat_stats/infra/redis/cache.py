"""Response cache for statistic results.

Entries are keyed by statistic name and a fingerprint of the validated
parameters, and expire after a short TTL.
"""

import json
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from chat_stats.infra.redis.client import RedisClient
from chat_stats.logging import get_logger
from chat_stats.utils.hashing import params_fingerprint

__all__ = [
    "StatsCache",
]

logger = get_logger(__name__)

T = TypeVar("T")


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


class StatsCache:
    """Redis cache for statistic results.

    Falls back to computing on every call if Redis is unavailable.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        ttl: int = 60,
        prefix: str = "chat_stats:",
    ) -> None:
        """Initialize statistic cache.

        Args:
            redis_client: Redis client instance
            ttl: Cache TTL in seconds
            prefix: Key prefix for statistic entries
        """
        self._redis = redis_client
        self._ttl = ttl
        self._prefix = prefix

    def make_key(self, statistic: str, params: Mapping[str, Any]) -> str:
        return f"{self._prefix}{statistic}:{params_fingerprint(params)}"

    async def get_or_compute(
        self,
        statistic: str,
        params: Mapping[str, Any],
        result_type: Any,
        compute_fn: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached result or compute and cache it.

        Args:
            statistic: Statistic name, part of the key
            params: Validated parameters the result depends on
            result_type: Type the cached JSON is validated back into
            compute_fn: Coroutine factory producing the result on a miss
        """
        if not self._redis.is_connected:
            return await compute_fn()

        key = self.make_key(statistic, params)
        cached = await self._redis.get(key)
        if cached is not None:
            try:
                return TypeAdapter(result_type).validate_json(cached)  # type: ignore[no-any-return]
            except ValidationError:
                logger.warning("stats_cache_entry_invalid", key=key)

        result = await compute_fn()
        await self._redis.set(key, json.dumps(_dump(result)), ex=self._ttl)
        return result
