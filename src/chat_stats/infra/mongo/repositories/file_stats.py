"""File statistics."""

from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.pipeline import (
    Pipeline,
    count,
    period_comparison_facet,
    project_comparison,
)
from chat_stats.infra.mongo.repositories.base import StatsRepository
from chat_stats.models.period import PeriodComparison
from chat_stats.models.stats import FilesProcessedResult

__all__ = [
    "FileStatsRepository",
]


class FileStatsRepository(StatsRepository):
    async def get_files_processed(self, period: PeriodComparison) -> FilesProcessedResult:
        """Files uploaded in the current and previous window."""
        pipeline: Pipeline = [
            period_comparison_facet(period, [count("total")]),
            project_comparison(
                {
                    "currentFilesProcessed": "current.total",
                    "prevFilesProcessed": "prev.total",
                }
            ),
        ]
        row = await self._aggregate_one(Collections.FILES, pipeline)
        return FilesProcessedResult.model_validate(row)
