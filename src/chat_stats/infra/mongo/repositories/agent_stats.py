"""Agent statistics over ``transactions``.

Only transactions whose conversation ran on the agents endpoint count.
Conversations pointing at a deleted agent still report under the raw
``agent_id``.
"""

from typing import Any

from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.joins import (
    AGENTS_ENDPOINT,
    join_conversation_and_agent,
    token_totals,
)
from chat_stats.infra.mongo.pipeline import (
    Pipeline,
    Stage,
    add_time_field,
    bucket_field,
    group,
    match,
    match_window,
    project,
    sort_by,
)
from chat_stats.infra.mongo.repositories.base import StatsRepository
from chat_stats.models.period import DateRange, TimeGranularity
from chat_stats.models.stats import AgentStatsTableEntry, TimeSeriesEntry, TotalAgentsResult

__all__ = [
    "AgentStatsRepository",
]

CONVERSATION = "conv"


def _agent_transactions(window: DateRange) -> list[Stage]:
    return [
        match_window(window),
        *join_conversation_and_agent(CONVERSATION),
        match({f"{CONVERSATION}.endpoint": AGENTS_ENDPOINT}),
    ]


def _agent_key() -> dict[str, Any]:
    return {
        "agentId": f"${CONVERSATION}.agent_id",
        "agentName": {"$ifNull": ["$agent.name", f"${CONVERSATION}.agent_id"]},
        "endpoint": {"$ifNull": ["$agent.provider", AGENTS_ENDPOINT]},
    }


class AgentStatsRepository(StatsRepository):
    """Per-agent tables and time series."""

    async def get_total_agent_count(self) -> TotalAgentsResult:
        total = await self._count(Collections.AGENTS)
        return TotalAgentsResult(total_agents_count=total)

    async def get_agent_stats_table(self, window: DateRange) -> list[AgentStatsTableEntry]:
        """Tokens and requests per agent and the model behind it."""
        pipeline: Pipeline = [
            *_agent_transactions(window),
            group(
                {**_agent_key(), "model": {"$ifNull": ["$agent.model", "$model"]}},
                **token_totals(),
            ),
            project(
                _id=0,
                agentId="$_id.agentId",
                agentName="$_id.agentName",
                model="$_id.model",
                endpoint="$_id.endpoint",
                totalInputToken=1,
                totalOutputToken=1,
                requests=1,
            ),
            sort_by({"agentName": 1, "model": 1}),
        ]
        rows = await self._aggregate(Collections.TRANSACTIONS, pipeline)
        return [AgentStatsTableEntry.model_validate(row) for row in rows]

    async def get_agent_time_series(
        self,
        window: DateRange,
        agent_name: str,
        granularity: TimeGranularity,
        timezone: str = "UTC",
    ) -> list[TimeSeriesEntry]:
        """Token totals per time bucket for one agent.

        ``agent_name`` matches either the agent's display name or its id.
        """
        field = bucket_field(granularity)
        pipeline: Pipeline = [
            *_agent_transactions(window),
            match(
                {
                    "$or": [
                        {"agent.name": agent_name},
                        {f"{CONVERSATION}.agent_id": agent_name},
                    ]
                }
            ),
            add_time_field(granularity, timezone),
            group({**_agent_key(), field: f"${field}"}, **token_totals()),
            sort_by({f"_id.{field}": 1}),
            project(
                _id=0,
                agentId="$_id.agentId",
                agentName="$_id.agentName",
                endpoint="$_id.endpoint",
                **{field: f"$_id.{field}"},
                totalInputToken=1,
                totalOutputToken=1,
                requests=1,
            ),
        ]
        rows = await self._aggregate(Collections.TRANSACTIONS, pipeline)
        return [TimeSeriesEntry.model_validate(row) for row in rows]
