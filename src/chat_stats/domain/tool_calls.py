"""Tool call and failure classification rules.

Message ``content`` items of type ``tool_call`` carry a ``tool_call.name``.
MCP tools encode their server in that name as ``toolName_mcp_serverName``
or ``toolName::serverName``; when both delimiters appear, ``::`` splits.
Web searches are recognised independently, so one call can count as both.

These patterns are matched server-side by the expressions in
chat_stats.infra.mongo.classifiers.
"""

__all__ = [
    "AI_ERROR_PATTERN",
    "ASSISTANT_SENDER",
    "ERROR_TYPE",
    "MCP_DELIMITER_PATTERN",
    "MCP_SERVER_DELIMITER",
    "MCP_SUFFIX_DELIMITER",
    "TOOL_CALL_TYPE",
    "USER_SENDER",
    "WEB_SEARCH_PATTERN",
]

MCP_SUFFIX_DELIMITER = "_mcp_"
MCP_SERVER_DELIMITER = "::"
MCP_DELIMITER_PATTERN = f"({MCP_SUFFIX_DELIMITER}|{MCP_SERVER_DELIMITER})"

# Matched case-insensitively
WEB_SEARCH_PATTERN = "web_search"
AI_ERROR_PATTERN = "(error|failed|failure|timed out|rate limit|unavailable)"

ASSISTANT_SENDER = "assistant"
USER_SENDER = "user"

TOOL_CALL_TYPE = "tool_call"
ERROR_TYPE = "error"
