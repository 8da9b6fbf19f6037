"""ChatStats orchestrator for dashboard statistics.

This module provides the main entry point for the chat_stats package:
one method per statistic, each taking the raw query parameters of a
dashboard request and returning typed results.
"""

from collections.abc import Awaitable, Callable, Mapping
from datetime import UTC, datetime
from typing import Any, TypeVar

from pymongo.errors import ConnectionFailure

from chat_stats.config import ChatStatsConfig
from chat_stats.errors import NotFoundError, UpstreamUnavailableError
from chat_stats.infra.mongo.client import MongoClient
from chat_stats.infra.mongo.repositories import (
    AgentStatsRepository,
    FileStatsRepository,
    ModelStatsRepository,
    TokenStatsRepository,
    ToolStatsRepository,
    UserStatsRepository,
)
from chat_stats.infra.redis.cache import StatsCache
from chat_stats.infra.redis.client import RedisClient
from chat_stats.interfaces.collections import CollectionProvider
from chat_stats.logging import get_logger, statistic_context
from chat_stats.models.period import DateRange, PeriodComparison
from chat_stats.models.stats import (
    ActiveUsersResult,
    AgentStatsTableEntry,
    ConversationsResult,
    FilesProcessedResult,
    HealthStatus,
    HeatMapResult,
    McpToolCallsResult,
    McpToolStatsChart,
    McpToolStatsTableEntry,
    MessageStatsResult,
    ModelCatalogEntry,
    ModelUsageEntry,
    StatsTableEntry,
    TimeSeriesEntry,
    TokenCountResult,
    ToolCallsResult,
    TotalAgentsResult,
    TotalUsersResult,
    UserBehaviorDetail,
    UserBehaviorEntry,
    WebSearchStats,
)
from chat_stats.services.query_parsing import (
    SeriesRequest,
    parse_agent_series,
    parse_date_range,
    parse_heatmap,
    parse_model_series,
    parse_period,
    parse_series,
    parse_user_detail,
)

__all__ = ["ChatStats"]

logger = get_logger(__name__)

T = TypeVar("T")

Params = Mapping[str, Any]


def _window_key(window: DateRange) -> dict[str, Any]:
    return {"start": window.start_date, "end": window.end_date}


def _period_key(period: PeriodComparison) -> dict[str, Any]:
    return {**_window_key(period), "prevStart": period.prev_start}


def _series_key(request: SeriesRequest) -> dict[str, Any]:
    return {
        **_window_key(request.window),
        "granularity": str(request.granularity),
        "timezone": request.timezone,
    }


class ChatStats:
    """Read-only statistics over a chat application's MongoDB datastore.

    Owns the pooled MongoDB client unless a collection provider is
    injected, and an optional Redis response cache. Parameters are
    validated before any datastore call; an unreachable datastore
    surfaces as UpstreamUnavailableError.

    Example:
        async with ChatStats() as stats:
            users = await stats.get_active_users(
                {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-31T23:59:59Z"}
            )
            print(users.to_dict())
    """

    def __init__(
        self,
        config: ChatStatsConfig | None = None,
        *,
        collections: CollectionProvider | None = None,
        cache: StatsCache | None = None,
    ) -> None:
        """Initialize ChatStats.

        Args:
            config: Settings; loaded from the environment when omitted
            collections: Collection provider to use instead of an owned MongoClient
            cache: Response cache to use instead of one built from Redis settings
        """
        self._config = config or ChatStatsConfig()
        self._owns_collections = collections is None
        self._collections: CollectionProvider = collections or MongoClient(self._config.mongo)
        self._cache = cache
        self._redis: RedisClient | None = None

        self._users = UserStatsRepository(self._collections)
        self._tokens = TokenStatsRepository(self._collections)
        self._models = ModelStatsRepository(self._collections)
        self._agents = AgentStatsRepository(self._collections)
        self._tools = ToolStatsRepository(self._collections)
        self._files = FileStatsRepository(self._collections)

    async def _connect(self) -> None:
        """Set up the optional response cache.

        MongoDB connects lazily on the first statistic.
        """
        if self._cache is None and self._config.redis_enabled:
            self._redis = RedisClient(self._config.redis)
            if await self._redis.connect():
                self._cache = StatsCache(self._redis, ttl=self._config.redis.ttl_seconds)
        logger.info("chat_stats_ready", cache_enabled=self._cache is not None)

    async def _disconnect(self) -> None:
        """Close owned connections."""
        if self._redis is not None:
            await self._redis.disconnect()
            self._redis = None
            self._cache = None
        if self._owns_collections and isinstance(self._collections, MongoClient):
            await self._collections.disconnect()
        logger.info("chat_stats_closed")

    async def __aenter__(self) -> "ChatStats":
        await self._connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        await self._disconnect()

    async def _fetch(
        self,
        statistic: str,
        key: Mapping[str, Any],
        result_type: Any,
        compute: Callable[[], Awaitable[T]],
    ) -> T:
        """Compute a statistic through the cache, mapping connectivity failures."""
        try:
            with statistic_context(statistic):
                if self._cache is not None:
                    return await self._cache.get_or_compute(statistic, key, result_type, compute)
                return await compute()
        except ConnectionFailure as e:
            logger.error("datastore_unavailable", statistic=statistic, error=str(e))
            raise UpstreamUnavailableError(
                f"Datastore unavailable while computing {statistic}"
            ) from e

    # === COMPARISON CARDS ===

    async def get_active_users(self, params: Params) -> ActiveUsersResult:
        period = parse_period(params)
        return await self._fetch(
            "active_users",
            _period_key(period),
            ActiveUsersResult,
            lambda: self._users.get_active_users(period),
        )

    async def get_conversations(self, params: Params) -> ConversationsResult:
        period = parse_period(params)
        return await self._fetch(
            "conversations",
            _period_key(period),
            ConversationsResult,
            lambda: self._users.get_conversations(period),
        )

    async def get_token_counts(self, params: Params) -> TokenCountResult:
        period = parse_period(params)
        return await self._fetch(
            "token_counts",
            _period_key(period),
            TokenCountResult,
            lambda: self._tokens.get_token_counts(period),
        )

    async def get_message_stats(self, params: Params) -> MessageStatsResult:
        period = parse_period(params)
        return await self._fetch(
            "message_stats",
            _period_key(period),
            MessageStatsResult,
            lambda: self._tokens.get_message_stats(period),
        )

    async def get_mcp_tool_calls(self, params: Params) -> McpToolCallsResult:
        period = parse_period(params)
        return await self._fetch(
            "mcp_tool_calls",
            _period_key(period),
            McpToolCallsResult,
            lambda: self._tools.get_mcp_tool_calls(period),
        )

    async def get_all_tool_calls(self, params: Params) -> ToolCallsResult:
        period = parse_period(params)
        return await self._fetch(
            "tool_calls",
            _period_key(period),
            ToolCallsResult,
            lambda: self._tools.get_all_tool_calls(period),
        )

    async def get_web_search_stats(self, params: Params) -> WebSearchStats:
        period = parse_period(params)
        return await self._fetch(
            "web_search",
            _period_key(period),
            WebSearchStats,
            lambda: self._tools.get_web_search_stats(period),
        )

    async def get_files_processed(self, params: Params) -> FilesProcessedResult:
        period = parse_period(params)
        return await self._fetch(
            "files_processed",
            _period_key(period),
            FilesProcessedResult,
            lambda: self._files.get_files_processed(period),
        )

    # === TOTALS ===

    async def get_total_users(self) -> TotalUsersResult:
        return await self._fetch(
            "total_users", {}, TotalUsersResult, self._users.get_total_user_count
        )

    async def get_total_agents(self) -> TotalAgentsResult:
        return await self._fetch(
            "total_agents", {}, TotalAgentsResult, self._agents.get_total_agent_count
        )

    # === HEATMAP ===

    async def get_request_heatmap(self, params: Params) -> HeatMapResult:
        """Weekday x hour request counts with the display granularity."""
        request = parse_heatmap(params)

        async def compute() -> HeatMapResult:
            data = await self._tokens.get_request_heatmap(request.window, request.timezone)
            return HeatMapResult(data=data, granularity=request.granularity)

        return await self._fetch(
            "request_heatmap",
            {**_window_key(request.window), "timezone": request.timezone},
            HeatMapResult,
            compute,
        )

    # === MODELS ===

    async def get_models_and_agents(self) -> list[ModelCatalogEntry]:
        return await self._fetch(
            "models_and_agents",
            {},
            list[ModelCatalogEntry],
            self._models.get_models_and_agents,
        )

    async def get_model_usage(self, params: Params) -> list[ModelUsageEntry]:
        window = parse_date_range(params)
        return await self._fetch(
            "model_usage",
            _window_key(window),
            list[ModelUsageEntry],
            lambda: self._models.get_model_usage_by_provider(window),
        )

    async def get_model_stats_table(self, params: Params) -> list[StatsTableEntry]:
        window = parse_date_range(params)
        return await self._fetch(
            "model_stats_table",
            _window_key(window),
            list[StatsTableEntry],
            lambda: self._models.get_model_stats_table(window),
        )

    async def get_model_time_series(self, params: Params) -> list[TimeSeriesEntry]:
        request = parse_model_series(params)
        return await self._fetch(
            "model_time_series",
            {**_series_key(request), "model": request.model},
            list[TimeSeriesEntry],
            lambda: self._models.get_model_time_series(
                request.window, request.model, request.granularity, request.timezone
            ),
        )

    # === AGENTS ===

    async def get_agent_stats_table(self, params: Params) -> list[AgentStatsTableEntry]:
        window = parse_date_range(params)
        return await self._fetch(
            "agent_stats_table",
            _window_key(window),
            list[AgentStatsTableEntry],
            lambda: self._agents.get_agent_stats_table(window),
        )

    async def get_agent_time_series(self, params: Params) -> list[TimeSeriesEntry]:
        request = parse_agent_series(params)
        return await self._fetch(
            "agent_time_series",
            {**_series_key(request), "agentName": request.agent_name},
            list[TimeSeriesEntry],
            lambda: self._agents.get_agent_time_series(
                request.window, request.agent_name, request.granularity, request.timezone
            ),
        )

    # === MCP TOOLS ===

    async def get_mcp_tool_stats_table(self, params: Params) -> list[McpToolStatsTableEntry]:
        window = parse_date_range(params)
        return await self._fetch(
            "mcp_tool_stats_table",
            _window_key(window),
            list[McpToolStatsTableEntry],
            lambda: self._tools.get_mcp_tool_stats_table(window),
        )

    async def get_mcp_tool_stats_chart(self, params: Params) -> McpToolStatsChart:
        request = parse_series(params)

        async def compute() -> McpToolStatsChart:
            data = await self._tools.get_mcp_tool_stats_chart(
                request.window, request.granularity, request.timezone
            )
            return McpToolStatsChart(data=data, granularity=request.granularity)

        return await self._fetch(
            "mcp_tool_stats_chart", _series_key(request), McpToolStatsChart, compute
        )

    # === USERS ===

    async def get_user_behavior_stats(self, params: Params) -> list[UserBehaviorEntry]:
        window = parse_date_range(params)
        return await self._fetch(
            "user_behavior",
            _window_key(window),
            list[UserBehaviorEntry],
            lambda: self._users.get_user_behavior_stats(window),
        )

    async def get_user_behavior_detail(self, params: Params) -> UserBehaviorDetail:
        """Drill-down for one user.

        Raises:
            InvalidQueryError: If userId or the window is missing or malformed
            NotFoundError: If the user has no messages in the window
        """
        request = parse_user_detail(params)
        detail = await self._fetch(
            "user_behavior_detail",
            {**_window_key(request.window), "userId": request.user_id},
            UserBehaviorDetail | None,
            lambda: self._users.get_user_behavior_detail(request.user_id, request.window),
        )
        if detail is None:
            raise NotFoundError(f"No activity for user '{request.user_id}' in the requested window")
        return detail

    # === HEALTH ===

    async def health(self) -> HealthStatus:
        """Report datastore reachability; never raises."""
        from chat_stats import __version__

        checks = {"mongodb": "ok" if await self._collections.ping() else "unavailable"}
        if self._redis is not None:
            checks["redis"] = "ok" if await self._redis.ping() else "unavailable"

        healthy = checks["mongodb"] == "ok"
        return HealthStatus(
            status="healthy" if healthy else "unhealthy",
            timestamp=datetime.now(UTC),
            version=__version__,
            checks=checks,
        )
