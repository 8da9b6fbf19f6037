"""Shared plumbing for the statistic repositories."""

from collections.abc import Sequence
from typing import Any

from chat_stats.infra.mongo.pipeline import Stage
from chat_stats.interfaces.collections import CollectionProvider
from chat_stats.logging import get_logger

__all__ = [
    "StatsRepository",
]

logger = get_logger(__name__)


class StatsRepository:
    """Base class for read-only aggregation repositories.

    Repositories never hold a collection handle of their own; every call
    asks the provider, which connects on first use.
    """

    def __init__(self, collections: CollectionProvider) -> None:
        """Initialize repository with a collection provider.

        Args:
            collections: Source of collection handles, usually a MongoClient
        """
        self._collections = collections

    async def _aggregate(
        self,
        collection: str,
        pipeline: Sequence[Stage],
    ) -> list[dict[str, Any]]:
        """Run a pipeline and collect every result row."""
        coll = await self._collections.get_collection(collection)
        rows = await coll.aggregate(list(pipeline)).to_list(length=None)
        logger.debug(
            "aggregation_completed",
            collection=str(collection),
            stages=len(pipeline),
            rows=len(rows),
        )
        return rows

    async def _aggregate_one(
        self,
        collection: str,
        pipeline: Sequence[Stage],
    ) -> dict[str, Any]:
        """Run a single-row pipeline; no rows yields an empty dict."""
        rows = await self._aggregate(collection, pipeline)
        return rows[0] if rows else {}

    async def _count(self, collection: str) -> int:
        coll = await self._collections.get_collection(collection)
        return await coll.count_documents({})
