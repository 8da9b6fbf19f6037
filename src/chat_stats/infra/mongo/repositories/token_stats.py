"""Token and message statistics."""

from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.joins import COMPLETION, PROMPT
from chat_stats.infra.mongo.pipeline import (
    Pipeline,
    abs_sum,
    facet,
    group,
    match_window,
    period_branches,
    period_comparison_facet,
    project,
    project_comparison,
    sort_by,
    sum_message_tokens,
)
from chat_stats.infra.mongo.repositories.base import StatsRepository
from chat_stats.models.period import DateRange, PeriodComparison
from chat_stats.models.stats import HeatMapEntry, MessageStatsResult, TokenCountResult

__all__ = [
    "TokenStatsRepository",
]


class TokenStatsRepository(StatsRepository):
    """Aggregations over ``transactions`` and ``messages`` volumes."""

    async def get_token_counts(self, period: PeriodComparison) -> TokenCountResult:
        """Prompt and completion token sums for the current and previous window.

        Amounts are summed as absolute values since spend is recorded with
        a negative sign.
        """
        totals = [group(None, total=abs_sum())]
        pipeline: Pipeline = [
            facet(
                {
                    **period_branches(
                        period, totals, {"tokenType": PROMPT}, ("currentInput", "prevInput")
                    ),
                    **period_branches(
                        period, totals, {"tokenType": COMPLETION}, ("currentOutput", "prevOutput")
                    ),
                }
            ),
            project_comparison(
                {
                    "currentInputToken": "currentInput.total",
                    "currentOutputToken": "currentOutput.total",
                    "prevInputToken": "prevInput.total",
                    "prevOutputToken": "prevOutput.total",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.TRANSACTIONS, pipeline)
        return TokenCountResult.model_validate(row)

    async def get_message_stats(self, period: PeriodComparison) -> MessageStatsResult:
        pipeline: Pipeline = [
            period_comparison_facet(period, [sum_message_tokens()]),
            project_comparison(
                {
                    "totalMessages": "current.totalMessages",
                    "totalTokenCount": "current.totalTokenCount",
                    "totalSummaryTokenCount": "current.totalSummaryTokenCount",
                    "prevTotalMessages": "prev.totalMessages",
                    "prevTotalTokenCount": "prev.totalTokenCount",
                    "prevTotalSummaryTokenCount": "prev.totalSummaryTokenCount",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.MESSAGES, pipeline)
        return MessageStatsResult.model_validate(row)

    async def get_request_heatmap(
        self,
        window: DateRange,
        timezone: str = "UTC",
    ) -> list[HeatMapEntry]:
        """Message counts per ISO weekday and hour of day in ``timezone``.

        Only non-empty cells are returned, ordered by weekday then hour.
        """
        local_date = {"date": "$createdAt", "timezone": timezone}
        pipeline: Pipeline = [
            match_window(window),
            project(
                dayOfWeek={"$isoDayOfWeek": local_date},
                hour={"$hour": local_date},
            ),
            group(
                {"dayOfWeek": "$dayOfWeek", "hour": "$hour"},
                totalRequests={"$sum": 1},
            ),
            sort_by({"_id.dayOfWeek": 1, "_id.hour": 1}),
            project(
                _id=0,
                dayOfWeek="$_id.dayOfWeek",
                timeSlot="$_id.hour",
                totalRequests=1,
            ),
        ]
        rows = await self._aggregate(Collections.MESSAGES, pipeline)
        return [HeatMapEntry.model_validate(row) for row in rows]
