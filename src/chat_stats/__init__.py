"""chat_stats - Read-only usage analytics over a chat application's MongoDB datastore.

This package provides tools for:
- Comparing activity, token and tool usage against the previous period
- Per-model and per-agent token tables and time series
- MCP tool and web search usage
- Per-user behavior rollups and drill-downs
- A weekday x hour request heatmap

Example usage:
    from chat_stats import ChatStats

    # Simple usage - config loaded from .env automatically
    async with ChatStats() as stats:
        tokens = await stats.get_token_counts(
            {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-31T23:59:59Z"}
        )
        table = await stats.get_model_stats_table({"start": "2024-01-01", "end": "2024-01-31"})
"""

__version__ = "0.1.0"

from chat_stats.config import ChatStatsConfig
from chat_stats.errors import (
    ChatStatsError,
    InvalidQueryError,
    NotFoundError,
    UpstreamUnavailableError,
)
from chat_stats.infra.mongo.client import Collections, MongoClient
from chat_stats.interfaces.collections import CollectionProvider
from chat_stats.orchestrator import ChatStats

__all__ = [  # noqa: RUF022
    # Orchestrator
    "ChatStats",
    "ChatStatsConfig",
    # Implementations
    "Collections",
    "MongoClient",
    # Interfaces
    "CollectionProvider",
    # Errors
    "ChatStatsError",
    "InvalidQueryError",
    "NotFoundError",
    "UpstreamUnavailableError",
]
