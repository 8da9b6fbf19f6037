"""Exception taxonomy for chat_stats.

Validation problems are raised before any datastore call; connectivity
problems surface as a single opaque upstream failure.
"""

from typing import Any

__all__ = [
    "ChatStatsError",
    "InvalidQueryError",
    "NotFoundError",
    "UpstreamUnavailableError",
]


class ChatStatsError(Exception):
    """Base class for all chat_stats errors."""


class InvalidQueryError(ChatStatsError, ValueError):
    """A request parameter is missing or malformed.

    Attributes:
        param: Name of the first failing query parameter
        reason: Human-readable explanation
        details: Every issue found, as ``{"param": ..., "reason": ...}`` dicts
    """

    def __init__(
        self,
        param: str,
        reason: str,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        self.param = param
        self.reason = reason
        self.details = details or [{"param": param, "reason": reason}]
        super().__init__(f"{param}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        """Serialize as a structured bad-input payload."""
        return {"error": self.reason, "param": self.param, "details": self.details}


class UpstreamUnavailableError(ChatStatsError):
    """The datastore could not be reached or timed out."""


class NotFoundError(ChatStatsError):
    """A drill-down target has no data in the requested window."""
