"""Model statistics over ``transactions`` with agent resolution."""

from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.joins import (
    AGENTS_ENDPOINT,
    join_conversation_and_agent,
    resolve_effective_model,
    token_totals,
)
from chat_stats.infra.mongo.pipeline import (
    Pipeline,
    abs_sum,
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
from chat_stats.models.stats import (
    ModelCatalogEntry,
    ModelUsageEntry,
    StatsTableEntry,
    TimeSeriesEntry,
)

__all__ = [
    "ModelStatsRepository",
]


class ModelStatsRepository(StatsRepository):
    """Per-model usage, tables and time series.

    Token pipelines attribute agent traffic to the agent's underlying
    model before grouping.
    """

    async def get_models_and_agents(self) -> list[ModelCatalogEntry]:
        """Every model seen in ``messages``, per endpoint, oldest first.

        Entries on the agents endpoint also list the agent names that
        answered with the model.
        """
        pipeline: Pipeline = [
            match({"model": {"$ne": None}}),
            group(
                {"endpoint": "$endpoint", "model": "$model"},
                sender={"$addToSet": "$sender"},
                firstCreatedAt={"$min": "$createdAt"},
            ),
            sort_by({"firstCreatedAt": 1}),
            group(
                "$_id.endpoint",
                models={
                    "$push": {
                        "$mergeObjects": [
                            {"model": "$_id.model", "firstCreatedAt": "$firstCreatedAt"},
                            {
                                "$cond": [
                                    {"$eq": ["$_id.endpoint", AGENTS_ENDPOINT]},
                                    {"agentName": "$sender"},
                                    {},
                                ]
                            },
                        ]
                    }
                },
            ),
            sort_by({"_id": 1}),
        ]
        rows = await self._aggregate(Collections.MESSAGES, pipeline)
        return [ModelCatalogEntry.model_validate(row) for row in rows]

    async def get_model_usage_by_provider(self, window: DateRange) -> list[ModelUsageEntry]:
        """Token totals per endpoint, broken down by resolved model."""
        pipeline: Pipeline = [
            match_window(window, {"model": {"$ne": None}}),
            *join_conversation_and_agent(),
            resolve_effective_model(),
            group(
                {"endpoint": "$endpoint", "model": "$resolvedModel"},
                tokenCount=abs_sum(),
            ),
            group(
                "$_id.endpoint",
                totalTokenCount={"$sum": "$tokenCount"},
                models={"$push": {"name": "$_id.model", "tokenCount": "$tokenCount"}},
            ),
            sort_by({"_id": 1}),
        ]
        rows = await self._aggregate(Collections.TRANSACTIONS, pipeline)
        return [ModelUsageEntry.model_validate(row) for row in rows]

    async def get_model_stats_table(self, window: DateRange) -> list[StatsTableEntry]:
        """Input/output tokens and requests per (resolved model, endpoint)."""
        pipeline: Pipeline = [
            match_window(window),
            *join_conversation_and_agent(),
            resolve_effective_model(),
            group(
                {"model": "$resolvedModel", "endpoint": "$endpoint"},
                **token_totals(),
            ),
            project(
                _id=0,
                model="$_id.model",
                endpoint="$_id.endpoint",
                totalInputToken=1,
                totalOutputToken=1,
                requests=1,
            ),
            sort_by({"model": 1, "endpoint": 1}),
        ]
        rows = await self._aggregate(Collections.TRANSACTIONS, pipeline)
        return [StatsTableEntry.model_validate(row) for row in rows]

    async def get_model_time_series(
        self,
        window: DateRange,
        model: str,
        granularity: TimeGranularity,
        timezone: str = "UTC",
    ) -> list[TimeSeriesEntry]:
        """Token totals per time bucket for one resolved model.

        The filter applies after agent resolution, so agent traffic on the
        model is included. ``requests`` counts completion transactions, matching
        the model stats table.
        """
        field = bucket_field(granularity)
        pipeline: Pipeline = [
            match_window(window),
            *join_conversation_and_agent(),
            resolve_effective_model(),
            match({"resolvedModel": model}),
            add_time_field(granularity, timezone),
            group(
                {"model": "$resolvedModel", "endpoint": "$endpoint", field: f"${field}"},
                **token_totals(),
            ),
            sort_by({f"_id.{field}": 1, "_id.endpoint": 1}),
            project(
                _id=0,
                model="$_id.model",
                endpoint="$_id.endpoint",
                **{field: f"$_id.{field}"},
                totalInputToken=1,
                totalOutputToken=1,
                requests=1,
            ),
        ]
        rows = await self._aggregate(Collections.TRANSACTIONS, pipeline)
        return [TimeSeriesEntry.model_validate(row) for row in rows]
