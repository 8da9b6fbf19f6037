"""MongoDB infrastructure for chat_stats."""

from chat_stats.infra.mongo.client import Collections, MongoClient
from chat_stats.infra.mongo.indexes import RECOMMENDED_INDEXES, create_recommended_indexes

__all__ = [
    "RECOMMENDED_INDEXES",
    "Collections",
    "MongoClient",
    "create_recommended_indexes",
]
