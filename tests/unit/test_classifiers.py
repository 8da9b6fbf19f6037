"""Unit tests for tool call and failure classification stages.

The stages are run over in-memory documents, so these tests check what
the expressions compute rather than how they are spelled.
"""

from typing import Any

import pytest

from chat_stats.infra.mongo.classifiers import (
    classify_message_stages,
    mcp_name_filter,
    split_mcp_tool_name,
    unwind_tool_calls,
    web_search_name_filter,
)
from tests.mocks.mock_expressions import apply_stages


def tool_message(*names: str, sender: str = "assistant") -> dict[str, Any]:
    """Create a message holding one tool call per name."""
    return {
        "sender": sender,
        "content": [
            {"type": "text", "text": "calling tools"},
            *({"type": "tool_call", "tool_call": {"name": name}} for name in names),
        ],
    }


def mcp_tools(*names: str) -> list[tuple[str, str | None]]:
    rows = apply_stages(
        [*unwind_tool_calls(mcp_name_filter()), *split_mcp_tool_name()],
        [tool_message(*names)],
    )
    return [(row["toolName"], row["serverName"]) for row in rows]


class TestMcpToolNames:
    """Tests for MCP detection and name splitting."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("toolA_mcp_serverB", ("toolA", "serverB")),
            ("toolA::serverB", ("toolA", "serverB")),
            ("list_mcp_items::server", ("list_mcp_items", "server")),
            ("dangling_mcp_", ("dangling", "")),
        ],
    )
    def test_split(self, name: str, expected: tuple[str, str]) -> None:
        assert mcp_tools(name) == [expected]

    def test_non_mcp_calls_excluded(self) -> None:
        assert mcp_tools("calculator", "web_search") == []

    def test_non_mcp_calls_kept_for_all_tool_calls(self) -> None:
        rows = apply_stages(unwind_tool_calls(), [tool_message("calculator", "toolA::serverB")])
        assert [row["content"]["tool_call"]["name"] for row in rows] == [
            "calculator",
            "toolA::serverB",
        ]

    def test_text_items_never_unwound_as_calls(self) -> None:
        rows = apply_stages(unwind_tool_calls(), [tool_message()])
        assert rows == []


class TestWebSearch:
    """Tests for web search detection."""

    @pytest.mark.parametrize("name", ["web_search", "WEB_SEARCH", "web_search_mcp_x"])
    def test_matches(self, name: str) -> None:
        rows = apply_stages(unwind_tool_calls(web_search_name_filter()), [tool_message(name)])
        assert len(rows) == 1

    @pytest.mark.parametrize("name", ["websearch", "search", "toolA::serverB"])
    def test_non_matches(self, name: str) -> None:
        assert apply_stages(unwind_tool_calls(web_search_name_filter()), [tool_message(name)]) == []

    def test_mcp_web_search_counts_as_both(self) -> None:
        name = "web_search_mcp_x"

        assert mcp_tools(name) == [("web_search", "x")]
        assert len(apply_stages(unwind_tool_calls(web_search_name_filter()), [tool_message(name)])) == 1


class TestMessageClassification:
    """Tests for per-message counts and the AI failure flag."""

    def test_counts_per_message(self) -> None:
        [row] = apply_stages(
            classify_message_stages(),
            [tool_message("web_search_mcp_x", "calculator", "toolA::serverB")],
        )

        assert row["mcpToolCallsInMessage"] == 2
        assert row["webSearchCallsInMessage"] == 1
        assert row["hasAiError"] is False

    @pytest.mark.parametrize(
        ("message", "expected"),
        [
            ({"sender": "assistant", "text": "Request Timed Out, please retry"}, True),
            (
                {
                    "sender": "assistant",
                    "text": "Here you go",
                    "content": [{"type": "text"}, {"type": "error", "error": "boom"}],
                },
                True,
            ),
            ({"sender": "assistant", "text": "All good", "content": [{"type": "text"}]}, False),
            ({"sender": "user", "text": "this failed", "content": [{"type": "error"}]}, False),
            ({"sender": "assistant"}, False),
        ],
    )
    def test_ai_failure(self, message: dict[str, Any], expected: bool) -> None:
        [row] = apply_stages(classify_message_stages(), [message])
        assert row["hasAiError"] is expected

    def test_non_array_content_counts_nothing(self) -> None:
        [row] = apply_stages(classify_message_stages(), [{"sender": "assistant", "content": "x"}])

        assert row["mcpToolCallsInMessage"] == 0
        assert row["webSearchCallsInMessage"] == 0
