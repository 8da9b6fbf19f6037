"""Redis infrastructure for chat_stats (optional)."""

from chat_stats.infra.redis.cache import StatsCache
from chat_stats.infra.redis.client import RedisClient

__all__ = ["RedisClient", "StatsCache"]
