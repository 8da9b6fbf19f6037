"""MongoDB client for chat_stats.

This module provides the read-only async MongoDB connection manager using Motor.
"""

import asyncio
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from chat_stats.config import MongoSettings
from chat_stats.logging import get_logger
from chat_stats.utils.lazy_import import lazy_import

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

__all__ = [
    "Collections",
    "MongoClient",
]

logger = get_logger(__name__)

get_async_motor = lazy_import("motor.motor_asyncio", "AsyncIOMotorClient")


class Collections(StrEnum):
    """Collections of the chat application datastore."""

    MESSAGES = "messages"
    TRANSACTIONS = "transactions"
    CONVERSATIONS = "conversations"
    AGENTS = "agents"
    USERS = "users"
    FILES = "files"


class MongoClient:
    """Async MongoDB connection manager (read-only).

    Lazily opens one pooled client on first use and shares it for the
    lifetime of the instance. Concurrent first callers wait for a single
    connection attempt; a failed attempt leaves nothing cached, so the
    next call starts over.

    Example:
        client = MongoClient(settings)
        messages = await client.get_collection(Collections.MESSAGES)
        rows = await messages.aggregate(pipeline).to_list(length=None)

        await client.disconnect()
    """

    def __init__(self, settings: MongoSettings) -> None:
        """Initialize client with settings.

        Args:
            settings: MongoDB connection settings
        """
        self._settings = settings
        self._database_name = settings.resolve_database_name()
        self._client = None
        self._db = None
        self._connect_lock = asyncio.Lock()

    @property
    def database_name(self) -> str:
        return self._database_name

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    async def connect(self) -> None:
        """Open the pooled client and verify it with a ping."""
        if self._db is not None:
            return

        async with self._connect_lock:
            # Another caller may have connected while we waited
            if self._db is not None:
                return

            AsyncIOMotorClient = get_async_motor()  # noqa: N806
            client = AsyncIOMotorClient(
                self._settings.uri.get_secret_value(),
                **self._settings.client_options(),
            )

            try:
                await client.admin.command("ping")
            except Exception as e:
                client.close()
                logger.error(
                    "mongo_connection_failed",
                    database=self._database_name,
                    error=str(e),
                )
                raise

            self._client = client
            self._db = client[self._database_name]
            logger.info(
                "connected_to_mongodb",
                database=self._database_name,
            )

    async def disconnect(self) -> None:
        """Close connection to MongoDB."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("disconnected_from_mongodb")

    @property
    def db(self) -> "AsyncIOMotorDatabase[dict[str, Any]]":
        """Get database instance.

        Raises:
            RuntimeError: If not connected
        """
        if self._db is None:
            raise RuntimeError("MongoClient not connected. Call connect() first.")
        return self._db

    async def get_collection(self, name: str) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get a collection, connecting first if needed."""
        await self.connect()
        return self.db[str(name)]

    async def ping(self) -> bool:
        """Check datastore reachability without raising."""
        try:
            await self.connect()
            await self.db.command("ping")
        except Exception as e:
            logger.warning("mongo_ping_failed", error=str(e))
            return False
        return True

    async def __aenter__(self) -> "MongoClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.disconnect()
