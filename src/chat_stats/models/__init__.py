"""Public models for chat_stats.

This module exports date windows, request queries and statistic rows.
"""

from chat_stats.models.period import (
    DateRange,
    HeatmapGranularity,
    PeriodComparison,
    TimeArea,
    TimeGranularity,
)
from chat_stats.models.queries import (
    AgentSeriesQuery,
    DateRangeQuery,
    HeatMapQuery,
    ModelSeriesQuery,
    TimeSeriesQuery,
    UserDetailQuery,
)
from chat_stats.models.stats import (
    ActiveUsersResult,
    AgentStatsTableEntry,
    ConversationsResult,
    FilesProcessedResult,
    HealthStatus,
    HeatMapEntry,
    HeatMapResult,
    McpToolCallsResult,
    McpToolStatsChart,
    McpToolStatsTableEntry,
    McpToolTimeSeriesEntry,
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

__all__ = [
    "ActiveUsersResult",
    "AgentSeriesQuery",
    "AgentStatsTableEntry",
    "ConversationsResult",
    "DateRange",
    "DateRangeQuery",
    "FilesProcessedResult",
    "HealthStatus",
    "HeatMapEntry",
    "HeatMapQuery",
    "HeatMapResult",
    "HeatmapGranularity",
    "McpToolCallsResult",
    "McpToolStatsChart",
    "McpToolStatsTableEntry",
    "McpToolTimeSeriesEntry",
    "MessageStatsResult",
    "ModelCatalogEntry",
    "ModelSeriesQuery",
    "ModelUsageEntry",
    "PeriodComparison",
    "StatsTableEntry",
    "TimeArea",
    "TimeGranularity",
    "TimeSeriesEntry",
    "TimeSeriesQuery",
    "TokenCountResult",
    "ToolCallsResult",
    "TotalAgentsResult",
    "TotalUsersResult",
    "UserBehaviorDetail",
    "UserBehaviorEntry",
    "UserDetailQuery",
    "WebSearchStats",
]
