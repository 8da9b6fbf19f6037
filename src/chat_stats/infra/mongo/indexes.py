"""Recommended indexes for the statistic queries.

Statistics never create indexes on their own. ``scripts/create_indexes.py``
prints the shell commands or applies them with an explicit flag.
"""

import json
from dataclasses import dataclass, field
from typing import Any

from pymongo import ASCENDING, DESCENDING, IndexModel

from chat_stats.infra.mongo.client import Collections, MongoClient
from chat_stats.logging import get_logger

__all__ = [
    "RECOMMENDED_INDEXES",
    "IndexSpec",
    "create_recommended_indexes",
    "render_index_script",
]

logger = get_logger(__name__)


@dataclass(frozen=True)
class IndexSpec:
    """One recommended index: ordered keys plus creation options."""

    name: str
    keys: tuple[tuple[str, int], ...]
    options: dict[str, Any] = field(default_factory=dict)

    def to_model(self) -> IndexModel:
        return IndexModel(list(self.keys), name=self.name, **self.options)

    def to_shell(self, collection: str) -> str:
        keys = ", ".join(f"{key}: {direction}" for key, direction in self.keys)
        options = ", ".join(
            f"{key}: {json.dumps(value)}" for key, value in {"name": self.name, **self.options}.items()
        )
        return f"db.{collection}.createIndex({{ {keys} }}, {{ {options} }});"


RECOMMENDED_INDEXES: dict[Collections, tuple[IndexSpec, ...]] = {
    Collections.MESSAGES: (
        IndexSpec(
            "idx_messages_createdAt_model_endpoint",
            (("createdAt", DESCENDING), ("model", ASCENDING), ("endpoint", ASCENDING)),
        ),
        IndexSpec("idx_messages_messageId", (("messageId", ASCENDING),), {"unique": True}),
        IndexSpec("idx_messages_user_createdAt", (("user", ASCENDING), ("createdAt", DESCENDING))),
        IndexSpec(
            "idx_messages_sender_createdAt",
            (("sender", ASCENDING), ("createdAt", DESCENDING)),
        ),
        IndexSpec("idx_messages_conversationId", (("conversationId", ASCENDING),)),
    ),
    Collections.TRANSACTIONS: (
        IndexSpec(
            "idx_transactions_createdAt_tokenType",
            (("createdAt", DESCENDING), ("tokenType", ASCENDING)),
        ),
        IndexSpec(
            "idx_transactions_user_createdAt",
            (("user", ASCENDING), ("createdAt", DESCENDING)),
        ),
        IndexSpec(
            "idx_transactions_model_createdAt",
            (("model", ASCENDING), ("createdAt", DESCENDING)),
        ),
    ),
    Collections.CONVERSATIONS: (
        IndexSpec("idx_conversations_conversationId", (("conversationId", ASCENDING),)),
    ),
    Collections.FILES: (IndexSpec("idx_files_createdAt", (("createdAt", DESCENDING),)),),
    Collections.USERS: (
        IndexSpec("idx_users_userId", (("userId", ASCENDING),), {"unique": True}),
    ),
    Collections.AGENTS: (IndexSpec("idx_agents_id", (("id", ASCENDING),), {"unique": True}),),
}


def render_index_script() -> str:
    """Shell commands creating every recommended index."""
    lines: list[str] = []
    for collection, specs in RECOMMENDED_INDEXES.items():
        lines.append(f"// {collection}")
        lines.extend(spec.to_shell(str(collection)) for spec in specs)
        lines.append("")
    return "\n".join(lines)


async def create_recommended_indexes(client: MongoClient) -> dict[str, list[str]]:
    """Create the recommended indexes.

    This is the only write operation in the package.

    Returns:
        Created index names per collection
    """
    created: dict[str, list[str]] = {}
    for collection, specs in RECOMMENDED_INDEXES.items():
        coll = await client.get_collection(collection)
        names = await coll.create_indexes([spec.to_model() for spec in specs])
        created[str(collection)] = list(names)
        logger.info("indexes_created", collection=str(collection), indexes=names)
    return created
