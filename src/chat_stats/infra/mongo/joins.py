"""Join and resolution stages over transactions.

Transactions link to conversations by ``conversationId`` and, for the
``agents`` endpoint, to agents by ``conversation.agent_id == agent.id``.
All joins are left-outer: missing conversations or agents fall back to
defaults instead of dropping the transaction.
"""

from typing import Any

from chat_stats.infra.mongo.client import Collections
from chat_stats.infra.mongo.pipeline import Stage, abs_sum_where, add_fields, count_where, lookup, unwind

__all__ = [
    "AGENTS_ENDPOINT",
    "DEFAULT_ENDPOINT",
    "join_conversation_and_agent",
    "resolve_effective_model",
    "token_totals",
]

AGENTS_ENDPOINT = "agents"
DEFAULT_ENDPOINT = "direct"

PROMPT = "prompt"
COMPLETION = "completion"


def join_conversation_and_agent(conversation_as: str = "conversation") -> list[Stage]:
    """Attach the conversation and, when present, its agent."""
    return [
        lookup(Collections.CONVERSATIONS, "conversationId", "conversationId", conversation_as),
        unwind(conversation_as),
        lookup(Collections.AGENTS, f"{conversation_as}.agent_id", "id", "agent"),
        unwind("agent"),
    ]


def _is_known_agent(conversation_as: str) -> dict[str, Any]:
    return {
        "$and": [
            {"$eq": [f"${conversation_as}.endpoint", AGENTS_ENDPOINT]},
            {"$ne": [{"$ifNull": ["$agent.model", None]}, None]},
        ]
    }


def resolve_effective_model(conversation_as: str = "conversation") -> Stage:
    """Set ``resolvedModel`` and ``endpoint`` before any model grouping.

    Agent conversations with a known agent report the agent's underlying
    model and provider; everything else keeps the transaction's own model
    and the conversation's endpoint.
    """
    known_agent = _is_known_agent(conversation_as)
    return add_fields(
        resolvedModel={"$cond": [known_agent, "$agent.model", "$model"]},
        endpoint={
            "$cond": [
                known_agent,
                {"$ifNull": ["$agent.provider", AGENTS_ENDPOINT]},
                {"$ifNull": [f"${conversation_as}.endpoint", DEFAULT_ENDPOINT]},
            ]
        },
    )


def token_totals() -> dict[str, Any]:
    """Input/output token sums and request count for a ``$group``.

    A request is one completion transaction.
    """
    return {
        "totalInputToken": abs_sum_where({"$eq": ["$tokenType", PROMPT]}),
        "totalOutputToken": abs_sum_where({"$eq": ["$tokenType", COMPLETION]}),
        "requests": count_where({"$eq": ["$tokenType", COMPLETION]}),
    }
