"""User statistics: active users, conversations and behavior rollups."""

import asyncio
from typing import Any

from chat_stats.domain.tool_calls import (
    ASSISTANT_SENDER,
    ERROR_TYPE,
    TOOL_CALL_TYPE,
    USER_SENDER,
)
from chat_stats.infra.mongo.classifiers import (
    classify_message_stages,
    content_items_of_type,
    has_ai_error,
    mcp_name_filter,
    split_mcp_tool_name,
    unwind_tool_calls,
)
from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.pipeline import (
    Pipeline,
    Stage,
    add_fields,
    count_distinct,
    count_where,
    group,
    limit,
    match_window,
    period_comparison_facet,
    project,
    project_comparison,
    sort_by,
    unwind,
)
from chat_stats.infra.mongo.repositories.base import StatsRepository
from chat_stats.logging import get_logger
from chat_stats.models.period import DateRange, PeriodComparison
from chat_stats.models.stats import (
    ActiveUsersResult,
    ConversationsResult,
    TotalUsersResult,
    UserBehaviorDetail,
    UserBehaviorEntry,
    UserMcpToolUsageEntry,
    UserRecentActivityEntry,
)

__all__ = [
    "RECENT_ACTIVITY_LIMIT",
    "TEXT_PREVIEW_LENGTH",
    "TOP_MCP_TOOLS_LIMIT",
    "UserStatsRepository",
]

logger = get_logger(__name__)

TOP_MCP_TOOLS_LIMIT = 10
RECENT_ACTIVITY_LIMIT = 25
TEXT_PREVIEW_LENGTH = 180

UNKNOWN = "unknown"


def _lookup_user_profile() -> list[Stage]:
    """Attach the ``users`` record whose ``userId`` is the grouped user as ``profile``."""
    return [
        {
            "$lookup": {
                "from": str(Collections.USERS),
                "let": {"targetUserId": "$_id"},
                "pipeline": [
                    {
                        "$match": {"$expr": {"$eq": ["$userId", "$$targetUserId"]}}
                    },
                    {"$project": {"_id": 0, "name": 1, "username": 1, "email": 1}},
                    {"$limit": 1},
                ],
                "as": "profile",
            }
        },
        unwind("profile"),
    ]


def _behavior_accumulators() -> dict[str, Any]:
    return {
        "messageCount": {"$sum": 1},
        "conversations": {"$addToSet": "$conversationId"},
        "mcpToolCallCount": {"$sum": "$mcpToolCallsInMessage"},
        "webSearchCount": {"$sum": "$webSearchCallsInMessage"},
        "aiErrorCount": count_where("$hasAiError"),
        "lastActivityAt": {"$max": "$createdAt"},
    }


def _behavior_projection(**extra: Any) -> Stage:
    return project(
        _id=0,
        userId={"$toString": {"$ifNull": ["$_id", UNKNOWN]}},
        userName={"$ifNull": ["$profile.name", "$profile.username"]},
        email="$profile.email",
        messageCount=1,
        conversationCount={"$size": "$conversations"},
        mcpToolCallCount=1,
        webSearchCount=1,
        aiErrorCount=1,
        lastActivityAt=1,
        **extra,
    )


class UserStatsRepository(StatsRepository):
    """Aggregations over ``messages`` keyed by user."""

    async def get_active_users(self, period: PeriodComparison) -> ActiveUsersResult:
        """Distinct message senders in the current and previous window."""
        pipeline: Pipeline = [
            period_comparison_facet(period, count_distinct("user", "activeUserCount")),
            project_comparison(
                {
                    "currentActiveUsers": "current.activeUserCount",
                    "prevActiveUsers": "prev.activeUserCount",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.MESSAGES, pipeline)
        return ActiveUsersResult.model_validate(row)

    async def get_conversations(self, period: PeriodComparison) -> ConversationsResult:
        """Distinct conversations with messages in each window."""
        pipeline: Pipeline = [
            period_comparison_facet(
                period, count_distinct("conversationId", "conversationCount")
            ),
            project_comparison(
                {
                    "currentConversations": "current.conversationCount",
                    "prevConversations": "prev.conversationCount",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.MESSAGES, pipeline)
        return ConversationsResult.model_validate(row)

    async def get_total_user_count(self) -> TotalUsersResult:
        total = await self._count(Collections.USERS)
        return TotalUsersResult(total_user_count=total)

    async def get_user_behavior_stats(self, window: DateRange) -> list[UserBehaviorEntry]:
        """Per-user message, tool and failure counts, busiest users first."""
        pipeline: Pipeline = [
            match_window(window),
            *classify_message_stages(),
            group("$user", **_behavior_accumulators()),
            *_lookup_user_profile(),
            _behavior_projection(),
            sort_by({"messageCount": -1, "lastActivityAt": -1}),
        ]
        rows = await self._aggregate(Collections.MESSAGES, pipeline)
        return [UserBehaviorEntry.model_validate(row) for row in rows]

    async def get_user_behavior_detail(
        self,
        user_id: str,
        window: DateRange,
    ) -> UserBehaviorDetail | None:
        """Drill-down for one user.

        Runs the summary, top MCP tools and recent activity pipelines
        concurrently.

        Returns:
            The detail, or None when the user has no messages in the window
        """
        summary_rows, tool_rows, activity_rows = await asyncio.gather(
            self._aggregate(Collections.MESSAGES, self._summary_pipeline(user_id, window)),
            self._aggregate(Collections.MESSAGES, self._top_tools_pipeline(user_id, window)),
            self._aggregate(Collections.MESSAGES, self._recent_activity_pipeline(user_id, window)),
        )

        if not summary_rows:
            logger.info("user_behavior_detail_empty", user_id=user_id)
            return None

        return UserBehaviorDetail.model_validate(
            {
                **summary_rows[0],
                "topMcpTools": [UserMcpToolUsageEntry.model_validate(r) for r in tool_rows],
                "recentActivities": [
                    UserRecentActivityEntry.model_validate(r) for r in activity_rows
                ],
            }
        )

    @staticmethod
    def _summary_pipeline(user_id: str, window: DateRange) -> Pipeline:
        return [
            match_window(window, {"user": user_id}),
            *classify_message_stages(),
            group(
                "$user",
                **_behavior_accumulators(),
                userMessageCount=count_where({"$eq": ["$sender", USER_SENDER]}),
                assistantMessageCount=count_where({"$eq": ["$sender", ASSISTANT_SENDER]}),
            ),
            *_lookup_user_profile(),
            _behavior_projection(userMessageCount=1, assistantMessageCount=1),
        ]

    @staticmethod
    def _top_tools_pipeline(user_id: str, window: DateRange) -> Pipeline:
        return [
            match_window(window, {"user": user_id, "content.type": TOOL_CALL_TYPE}),
            *unwind_tool_calls(mcp_name_filter()),
            *split_mcp_tool_name(),
            group(
                {"toolName": "$toolName", "serverName": "$serverName"},
                count={"$sum": 1},
            ),
            project(
                _id=0,
                toolName="$_id.toolName",
                serverName="$_id.serverName",
                count=1,
            ),
            sort_by({"count": -1, "toolName": 1}),
            limit(TOP_MCP_TOOLS_LIMIT),
        ]

    @staticmethod
    def _recent_activity_pipeline(user_id: str, window: DateRange) -> Pipeline:
        return [
            match_window(window, {"user": user_id}),
            sort_by({"createdAt": -1}),
            limit(RECENT_ACTIVITY_LIMIT),
            add_fields(errorItemsInMessage=content_items_of_type(ERROR_TYPE)),
            project(
                _id=0,
                messageId={"$ifNull": ["$messageId", ""]},
                conversationId={"$ifNull": ["$conversationId", ""]},
                sender={"$ifNull": ["$sender", UNKNOWN]},
                model=1,
                endpoint={"$ifNull": ["$endpoint", UNKNOWN]},
                textPreview={
                    "$substrCP": [{"$ifNull": ["$text", ""]}, 0, TEXT_PREVIEW_LENGTH]
                },
                createdAt=1,
                hasAiError=has_ai_error(),
            ),
        ]
