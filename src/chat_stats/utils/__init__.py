"""Utility functions for chat_stats.

This module contains internal utility functions.
"""

from chat_stats.utils.hashing import hash_text, params_fingerprint
from chat_stats.utils.lazy_import import lazy_import

__all__ = [
    "hash_text",
    "lazy_import",
    "params_fingerprint",
]
