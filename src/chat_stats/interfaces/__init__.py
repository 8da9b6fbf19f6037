"""Interface contracts for chat_stats.

This module exports all Protocol-based interfaces for dependency injection.
"""

from chat_stats.interfaces.collections import CollectionProvider

__all__ = [
    "CollectionProvider",
]
