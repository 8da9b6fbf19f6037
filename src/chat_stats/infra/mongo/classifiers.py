"""Aggregation expressions for tool call and failure classification.

Patterns and message types come from chat_stats.domain.tool_calls.
"""

from typing import Any

from chat_stats.domain.tool_calls import (
    AI_ERROR_PATTERN,
    ASSISTANT_SENDER,
    ERROR_TYPE,
    MCP_DELIMITER_PATTERN,
    MCP_SERVER_DELIMITER,
    MCP_SUFFIX_DELIMITER,
    TOOL_CALL_TYPE,
    WEB_SEARCH_PATTERN,
)
from chat_stats.infra.mongo.pipeline import (
    Stage,
    add_fields,
    array_or_empty,
    match,
    unwind,
)

__all__ = [
    "TOOL_NAME_FIELD",
    "classify_message_stages",
    "content_items_of_type",
    "has_ai_error",
    "mcp_name_filter",
    "split_mcp_tool_name",
    "tool_call_count",
    "unwind_tool_calls",
    "web_search_name_filter",
]

TOOL_NAME_FIELD = "content.tool_call.name"


def mcp_name_filter() -> dict[str, Any]:
    return {TOOL_NAME_FIELD: {"$regex": MCP_DELIMITER_PATTERN}}


def web_search_name_filter() -> dict[str, Any]:
    return {TOOL_NAME_FIELD: {"$regex": WEB_SEARCH_PATTERN, "$options": "i"}}


def unwind_tool_calls(name_filter: dict[str, Any] | None = None) -> list[Stage]:
    """One document per tool call content item.

    Expects an earlier match on ``content.type`` so only messages holding
    tool calls get unwound.
    """
    stages: list[Stage] = [
        unwind("content", preserve_empty=False),
        match({"content.type": TOOL_CALL_TYPE}),
    ]
    if name_filter:
        stages.append(match(name_filter))
    return stages


def split_mcp_tool_name() -> list[Stage]:
    """Derive ``toolName`` and ``serverName`` from an unwound MCP tool call.

    ``::`` is used as the delimiter whenever the name contains it,
    otherwise ``_mcp_``.
    """
    return [
        add_fields(
            toolId=f"${TOOL_NAME_FIELD}",
            delimiter={
                "$cond": {
                    "if": {
                        "$regexMatch": {
                            "input": f"${TOOL_NAME_FIELD}",
                            "regex": MCP_SERVER_DELIMITER,
                        }
                    },
                    "then": MCP_SERVER_DELIMITER,
                    "else": MCP_SUFFIX_DELIMITER,
                }
            },
        ),
        add_fields(parts={"$split": ["$toolId", "$delimiter"]}),
        add_fields(
            toolName={"$arrayElemAt": ["$parts", 0]},
            serverName={"$arrayElemAt": ["$parts", 1]},
        ),
    ]


def content_items_of_type(item_type: str, content_path: str = "$content") -> dict[str, Any]:
    """Content items of one type, treating a non-array ``content`` as empty."""
    return {
        "$filter": {
            "input": array_or_empty(content_path),
            "as": "contentItem",
            "cond": {"$eq": ["$$contentItem.type", item_type]},
        }
    }


def tool_call_count(tool_calls_path: str, pattern: str, options: str | None = None) -> dict[str, Any]:
    """Number of tool calls in a per-message array whose name matches ``pattern``."""
    regex: dict[str, Any] = {
        "input": {"$ifNull": ["$$toolCallItem.tool_call.name", ""]},
        "regex": pattern,
    }
    if options:
        regex["options"] = options
    return {
        "$size": {
            "$filter": {
                "input": tool_calls_path,
                "as": "toolCallItem",
                "cond": {"$regexMatch": regex},
            }
        }
    }


def has_ai_error(error_items_path: str = "$errorItemsInMessage") -> dict[str, Any]:
    """True for assistant messages with an error keyword or an error item."""
    return {
        "$and": [
            {"$eq": ["$sender", ASSISTANT_SENDER]},
            {
                "$or": [
                    {
                        "$regexMatch": {
                            "input": {"$ifNull": ["$text", ""]},
                            "regex": AI_ERROR_PATTERN,
                            "options": "i",
                        }
                    },
                    {"$gt": [{"$size": error_items_path}, 0]},
                ]
            },
        ]
    }


def classify_message_stages() -> list[Stage]:
    """Per-message MCP, web search and failure annotations."""
    return [
        add_fields(
            toolCallsInMessage=content_items_of_type(TOOL_CALL_TYPE),
            errorItemsInMessage=content_items_of_type(ERROR_TYPE),
        ),
        add_fields(
            mcpToolCallsInMessage=tool_call_count("$toolCallsInMessage", MCP_DELIMITER_PATTERN),
            webSearchCallsInMessage=tool_call_count(
                "$toolCallsInMessage", WEB_SEARCH_PATTERN, options="i"
            ),
            hasAiError=has_ai_error(),
        ),
    ]
