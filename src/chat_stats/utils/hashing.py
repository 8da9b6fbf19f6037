"""Hashing utilities for chat_stats.

Deterministic keys for caching statistic results.
"""

import hashlib
import json
from collections.abc import Mapping
from datetime import datetime
from typing import Any

__all__ = [
    "hash_text",
    "params_fingerprint",
]


def hash_text(text: str) -> str:
    """Generate SHA256 hash of text.

    Args:
        text: Input text to hash

    Returns:
        Hexadecimal SHA256 hash string
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def params_fingerprint(params: Mapping[str, Any]) -> str:
    """Hash of a parameter mapping that ignores key order.

    Args:
        params: Validated statistic parameters

    Returns:
        Hexadecimal SHA256 hash string
    """
    canonical = json.dumps(dict(params), sort_keys=True, default=_json_default)
    return hash_text(canonical)
