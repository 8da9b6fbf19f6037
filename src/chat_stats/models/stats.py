"""Statistic result models for chat_stats.

Rows are computed fresh per request from aggregation output. Python
attributes are snake_case; the wire form (``to_dict``) uses the
camelCase keys dashboard clients expect.
"""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from chat_stats.models.period import HeatmapGranularity, TimeGranularity

__all__ = [
    "ActiveUsersResult",
    "AgentStatsTableEntry",
    "ComparisonResult",
    "ConversationsResult",
    "FilesProcessedResult",
    "HealthStatus",
    "HeatMapEntry",
    "HeatMapResult",
    "McpToolCallsResult",
    "McpToolStatsChart",
    "McpToolStatsTableEntry",
    "McpToolTimeSeriesEntry",
    "MessageStatsResult",
    "ModelCatalogEntry",
    "ModelCatalogItem",
    "ModelUsageEntry",
    "ModelUsageItem",
    "StatsRow",
    "StatsTableEntry",
    "TimeSeriesEntry",
    "TokenCountResult",
    "ToolCallsResult",
    "TotalAgentsResult",
    "TotalUsersResult",
    "UserBehaviorDetail",
    "UserBehaviorEntry",
    "UserMcpToolUsageEntry",
    "UserRecentActivityEntry",
    "WebSearchStats",
    "WebSearchStatsEntry",
]

Number = int | float


class StatsRow(BaseModel):
    """Base for every statistic row."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ComparisonResult(StatsRow):
    """Current-vs-previous scalar metrics.

    Every field defaults to zero, and explicit nulls coming back from the
    datastore are replaced by zero, so no key is ever missing or null.
    """

    @model_validator(mode="before")
    @classmethod
    def _nulls_to_zero(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    def trends(self) -> dict[str, float | None]:
        """Percentage change for every current/previous pair, keyed by metric.

        ``currentActiveUsers`` and ``prevActiveUsers`` yield ``activeUsersTrend``.
        """
        from chat_stats.domain.period import calculate_trend

        fields = type(self).model_fields
        trends: dict[str, float | None] = {}
        for name in fields:
            metric = name.removeprefix("current_")
            prev = f"prev_{metric}"
            if not name.startswith("prev_") and prev in fields:
                trends[f"{to_camel(metric)}Trend"] = calculate_trend(
                    getattr(self, name), getattr(self, prev)
                )
        return trends


class ActiveUsersResult(ComparisonResult):
    current_active_users: int = 0
    prev_active_users: int = 0


class ConversationsResult(ComparisonResult):
    current_conversations: int = 0
    prev_conversations: int = 0


class McpToolCallsResult(ComparisonResult):
    current_mcp_tool_calls: int = 0
    prev_mcp_tool_calls: int = 0


class ToolCallsResult(ComparisonResult):
    current_tool_calls: int = 0
    prev_tool_calls: int = 0


class FilesProcessedResult(ComparisonResult):
    current_files_processed: int = 0
    prev_files_processed: int = 0


class TokenCountResult(ComparisonResult):
    """Input (prompt) and output (completion) token sums for both windows."""

    current_input_token: Number = 0
    current_output_token: Number = 0
    prev_input_token: Number = 0
    prev_output_token: Number = 0


class MessageStatsResult(ComparisonResult):
    total_messages: int = 0
    total_token_count: Number = 0
    total_summary_token_count: Number = 0
    prev_total_messages: int = 0
    prev_total_token_count: Number = 0
    prev_total_summary_token_count: Number = 0


class TotalUsersResult(StatsRow):
    total_user_count: int = 0


class TotalAgentsResult(StatsRow):
    total_agents_count: int = 0


class HeatMapEntry(StatsRow):
    """Request count for one ISO weekday and hour-of-day cell.

    Attributes:
        day_of_week: ISO weekday, 1 = Monday .. 7 = Sunday
        time_slot: Hour of day, 0..23
        total_requests: Messages created in that cell
    """

    day_of_week: int = Field(ge=1, le=7)
    time_slot: int = Field(ge=0, le=23)
    total_requests: int = 0


class HeatMapResult(StatsRow):
    data: list[HeatMapEntry] = Field(default_factory=list)
    granularity: HeatmapGranularity


class ModelUsageItem(StatsRow):
    name: str | None = None
    token_count: Number = 0


class ModelUsageEntry(StatsRow):
    """Token usage for one endpoint, broken down by resolved model."""

    endpoint: str = Field(
        validation_alias=AliasChoices("_id", "endpoint"),
        serialization_alias="endpoint",
    )
    total_token_count: Number = 0
    models: list[ModelUsageItem] = Field(default_factory=list)


class ModelCatalogItem(StatsRow):
    model: str
    first_created_at: datetime | None = None
    agent_name: list[str] | None = None


class ModelCatalogEntry(StatsRow):
    """Models ever seen on one endpoint, oldest first."""

    endpoint: str | None = Field(
        default=None,
        validation_alias=AliasChoices("_id", "endpoint"),
        serialization_alias="endpoint",
    )
    models: list[ModelCatalogItem] = Field(default_factory=list)


class StatsTableEntry(StatsRow):
    """One row of the per-model statistics table."""

    model: str | None = None
    endpoint: str
    total_input_token: Number = 0
    total_output_token: Number = 0
    requests: int = 0


class AgentStatsTableEntry(StatsTableEntry):
    agent_id: str | None = None
    agent_name: str | None = None


class TimeSeriesEntry(StatsRow):
    """One time bucket of a model or agent series.

    Exactly one of hour, day or month is set, named after the granularity
    the series was requested with.
    """

    model: str | None = None
    agent_id: str | None = None
    agent_name: str | None = None
    endpoint: str | None = None
    hour: str | None = None
    day: str | None = None
    month: str | None = None
    total_input_token: Number = 0
    total_output_token: Number = 0
    requests: int = 0

    @property
    def bucket(self) -> str | None:
        return self.hour or self.day or self.month

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class McpToolStatsTableEntry(StatsRow):
    tool_name: str
    server_name: str | None = None
    call_count: int = 0
    unique_users: int = 0
    unique_conversations: int = 0


class McpToolTimeSeriesEntry(StatsRow):
    tool_name: str
    server_name: str | None = None
    date: str
    call_count: int = 0


class McpToolStatsChart(StatsRow):
    data: list[McpToolTimeSeriesEntry] = Field(default_factory=list)
    granularity: TimeGranularity


class WebSearchStatsEntry(StatsRow):
    search_count: int = 0
    unique_users: int = 0
    unique_conversations: int = 0


class WebSearchStats(StatsRow):
    current: WebSearchStatsEntry = Field(default_factory=WebSearchStatsEntry)
    prev: WebSearchStatsEntry = Field(default_factory=WebSearchStatsEntry)


class UserBehaviorEntry(StatsRow):
    """Per-user activity rollup for a window."""

    user_id: str
    user_name: str | None = None
    email: str | None = None
    message_count: int = 0
    conversation_count: int = 0
    mcp_tool_call_count: int = 0
    web_search_count: int = 0
    ai_error_count: int = 0
    last_activity_at: datetime | None = None


class UserMcpToolUsageEntry(StatsRow):
    tool_name: str
    server_name: str | None = None
    count: int = 0


class UserRecentActivityEntry(StatsRow):
    message_id: str = ""
    conversation_id: str = ""
    sender: str = "unknown"
    model: str | None = None
    endpoint: str = "unknown"
    text_preview: str = ""
    created_at: datetime
    has_ai_error: bool = False


class UserBehaviorDetail(UserBehaviorEntry):
    """Drill-down for a single user."""

    user_message_count: int = 0
    assistant_message_count: int = 0
    top_mcp_tools: list[UserMcpToolUsageEntry] = Field(default_factory=list)
    recent_activities: list[UserRecentActivityEntry] = Field(default_factory=list)


class HealthStatus(StatsRow):
    status: str
    timestamp: datetime
    version: str
    checks: dict[str, str] = Field(default_factory=dict)
