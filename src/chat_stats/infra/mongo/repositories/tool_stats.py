"""Tool call statistics: MCP tools, all tool calls and web search.

All pipelines read ``messages`` and unwind ``content`` so each tool call
item counts once.
"""

from chat_stats.domain.tool_calls import TOOL_CALL_TYPE
from chat_stats.infra.mongo.classifiers import (
    mcp_name_filter,
    split_mcp_tool_name,
    unwind_tool_calls,
    web_search_name_filter,
)
from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.pipeline import (
    Pipeline,
    Stage,
    count,
    date_bucket,
    group,
    match_window,
    period_comparison_facet,
    project,
    project_comparison,
    sort_by,
)
from chat_stats.infra.mongo.repositories.base import StatsRepository
from chat_stats.models.period import DateRange, PeriodComparison, TimeGranularity
from chat_stats.models.stats import (
    McpToolCallsResult,
    McpToolStatsTableEntry,
    McpToolTimeSeriesEntry,
    ToolCallsResult,
    WebSearchStats,
)

__all__ = [
    "ToolStatsRepository",
]

HAS_TOOL_CALL = {"content.type": TOOL_CALL_TYPE}

EMPTY_WEB_SEARCH = {"searchCount": 0, "uniqueUsers": 0, "uniqueConversations": 0}


def _mcp_tool_calls(window: DateRange) -> list[Stage]:
    return [
        match_window(window, HAS_TOOL_CALL),
        *unwind_tool_calls(mcp_name_filter()),
        *split_mcp_tool_name(),
    ]


class ToolStatsRepository(StatsRepository):
    async def get_mcp_tool_calls(self, period: PeriodComparison) -> McpToolCallsResult:
        """MCP tool call counts for the current and previous window."""
        pipeline: Pipeline = [
            period_comparison_facet(
                period,
                [*unwind_tool_calls(mcp_name_filter()), count("mcpToolCallCount")],
                HAS_TOOL_CALL,
            ),
            project_comparison(
                {
                    "currentMcpToolCalls": "current.mcpToolCallCount",
                    "prevMcpToolCalls": "prev.mcpToolCallCount",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.MESSAGES, pipeline)
        return McpToolCallsResult.model_validate(row)

    async def get_all_tool_calls(self, period: PeriodComparison) -> ToolCallsResult:
        """Counts of every tool call, MCP or not."""
        pipeline: Pipeline = [
            period_comparison_facet(
                period,
                [*unwind_tool_calls(), count("toolCallCount")],
                HAS_TOOL_CALL,
            ),
            project_comparison(
                {
                    "currentToolCalls": "current.toolCallCount",
                    "prevToolCalls": "prev.toolCallCount",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.MESSAGES, pipeline)
        return ToolCallsResult.model_validate(row)

    async def get_mcp_tool_stats_table(self, window: DateRange) -> list[McpToolStatsTableEntry]:
        """Calls, distinct users and distinct conversations per MCP tool."""
        pipeline: Pipeline = [
            *_mcp_tool_calls(window),
            group(
                {"toolName": "$toolName", "serverName": "$serverName"},
                callCount={"$sum": 1},
                uniqueUsers={"$addToSet": "$user"},
                uniqueConversations={"$addToSet": "$conversationId"},
            ),
            project(
                _id=0,
                toolName="$_id.toolName",
                serverName="$_id.serverName",
                callCount=1,
                uniqueUsers={"$size": "$uniqueUsers"},
                uniqueConversations={"$size": "$uniqueConversations"},
            ),
            sort_by({"callCount": -1, "toolName": 1}),
        ]
        rows = await self._aggregate(Collections.MESSAGES, pipeline)
        return [McpToolStatsTableEntry.model_validate(row) for row in rows]

    async def get_mcp_tool_stats_chart(
        self,
        window: DateRange,
        granularity: TimeGranularity,
        timezone: str = "UTC",
    ) -> list[McpToolTimeSeriesEntry]:
        """MCP call counts per tool, server and time bucket."""
        pipeline: Pipeline = [
            *_mcp_tool_calls(window),
            group(
                {
                    "toolName": "$toolName",
                    "serverName": "$serverName",
                    "date": date_bucket(granularity, timezone),
                },
                callCount={"$sum": 1},
            ),
            project(
                _id=0,
                toolName="$_id.toolName",
                serverName="$_id.serverName",
                date="$_id.date",
                callCount=1,
            ),
            sort_by({"date": 1, "toolName": 1}),
        ]
        rows = await self._aggregate(Collections.MESSAGES, pipeline)
        return [McpToolTimeSeriesEntry.model_validate(row) for row in rows]

    async def get_web_search_stats(self, period: PeriodComparison) -> WebSearchStats:
        """Web search calls with distinct users and conversations, per window."""
        pipeline: Pipeline = [
            period_comparison_facet(
                period,
                [
                    *unwind_tool_calls(web_search_name_filter()),
                    group(
                        None,
                        searchCount={"$sum": 1},
                        uniqueUsers={"$addToSet": "$user"},
                        uniqueConversations={"$addToSet": "$conversationId"},
                    ),
                    project(
                        _id=0,
                        searchCount=1,
                        uniqueUsers={"$size": "$uniqueUsers"},
                        uniqueConversations={"$size": "$uniqueConversations"},
                    ),
                ],
                HAS_TOOL_CALL,
            ),
            project_comparison({"current": "current", "prev": "prev"}, EMPTY_WEB_SEARCH),
        ]
        row = await self._aggregate_one(Collections.MESSAGES, pipeline)
        return WebSearchStats.model_validate(row)
