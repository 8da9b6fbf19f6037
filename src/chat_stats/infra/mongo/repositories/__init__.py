"""Read-only statistic repositories over the chat datastore."""

from chat_stats.infra.mongo.repositories.agent_stats import AgentStatsRepository
from chat_stats.infra.mongo.repositories.base import StatsRepository
from chat_stats.infra.mongo.repositories.file_stats import FileStatsRepository
from chat_stats.infra.mongo.repositories.model_stats import ModelStatsRepository
from chat_stats.infra.mongo.repositories.token_stats import TokenStatsRepository
from chat_stats.infra.mongo.repositories.tool_stats import ToolStatsRepository
from chat_stats.infra.mongo.repositories.user_stats import UserStatsRepository

__all__ = [
    "AgentStatsRepository",
    "FileStatsRepository",
    "ModelStatsRepository",
    "StatsRepository",
    "TokenStatsRepository",
    "ToolStatsRepository",
    "UserStatsRepository",
]
