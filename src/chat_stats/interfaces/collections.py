"""Collection provider interface for chat_stats.

This module defines the Protocol repositories use to reach the datastore,
so a pooled client or a test fake can be injected.
"""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection

__all__ = [
    "CollectionProvider",
]


@runtime_checkable
class CollectionProvider(Protocol):
    """Contract for read-only collection access.

    Implementations hand out collections of one shared, pooled client.
    Concurrent first calls must not open more than one client.
    """

    async def get_collection(self, name: str) -> "AsyncIOMotorCollection[dict[str, Any]]":
        """Get a collection by name.

        Args:
            name: Collection name

        Returns:
            Collection supporting ``aggregate`` and ``count_documents``
        """
        ...

    async def ping(self) -> bool:
        """Check datastore reachability without raising."""
        ...
