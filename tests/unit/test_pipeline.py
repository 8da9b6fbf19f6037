"""Unit tests for aggregation stage builders."""

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from chat_stats.domain.period import calculate_previous_period
from chat_stats.infra.mongo.classifiers import (
    mcp_name_filter,
    split_mcp_tool_name,
    unwind_tool_calls,
    web_search_name_filter,
)
from chat_stats.infra.mongo.joins import join_conversation_and_agent, resolve_effective_model
from chat_stats.infra.mongo.pipeline import (
    add_time_field,
    bucket_field,
    count_distinct,
    date_bucket,
    first_or_default,
    match_date_range,
    match_nothing,
    period_comparison_facet,
    project_comparison,
    unwind,
)
from chat_stats.models.period import TimeGranularity
from tests.mocks.mock_expressions import apply_stages

START = datetime(2024, 1, 1, tzinfo=UTC)
END = datetime(2024, 1, 8, tzinfo=UTC)


class TestMatchDateRange:
    def test_inclusive_bounds(self) -> None:
        stage = match_date_range(START, END)
        assert stage == {"$match": {"createdAt": {"$gte": START, "$lte": END}}}

    def test_additional_filters_merged(self) -> None:
        stage = match_date_range(START, END, {"tokenType": "prompt"})
        assert stage["$match"]["tokenType"] == "prompt"
        assert stage["$match"]["createdAt"] == {"$gte": START, "$lte": END}


class TestTimeBuckets:
    """Tests for date bucketing."""

    @pytest.mark.parametrize(
        ("granularity", "fmt", "field"),
        [
            (TimeGranularity.HOUR, "%d, %H:00", "hour"),
            (TimeGranularity.DAY, "%Y-%m-%d", "day"),
            (TimeGranularity.MONTH, "%Y-%m", "month"),
        ],
    )
    def test_formats_and_fields(self, granularity: TimeGranularity, fmt: str, field: str) -> None:
        stage = add_time_field(granularity, "Europe/Berlin")
        assert stage == {
            "$addFields": {
                field: {
                    "$dateToString": {
                        "format": fmt,
                        "date": "$createdAt",
                        "timezone": "Europe/Berlin",
                    }
                }
            }
        }

    def test_default_timezone_is_utc(self) -> None:
        assert date_bucket("day")["$dateToString"]["timezone"] == "UTC"

    def test_unknown_granularity_rejected(self) -> None:
        with pytest.raises(ValueError):
            bucket_field("week")


class TestPeriodComparisonFacet:
    """Tests for current/previous facet construction."""

    def test_both_branches_share_stages(self) -> None:
        period = calculate_previous_period(START, END)
        stages = count_distinct("user", "activeUserCount")

        stage = period_comparison_facet(period, stages)

        current = stage["$facet"]["current"]
        prev = stage["$facet"]["prev"]
        assert current[0] == match_date_range(START, END)
        assert prev[0] == match_date_range(START - timedelta(days=7), START)
        assert current[1:] == prev[1:] == [
            {"$group": {"_id": "$user"}},
            {"$count": "activeUserCount"},
        ]

    def test_filters_apply_to_both_windows(self) -> None:
        period = calculate_previous_period(START, END)
        stage = period_comparison_facet(period, [], {"content.type": "tool_call"})

        assert stage["$facet"]["current"][0]["$match"]["content.type"] == "tool_call"
        assert stage["$facet"]["prev"][0]["$match"]["content.type"] == "tool_call"

    def test_zero_length_period_matches_nothing_before(self) -> None:
        period = calculate_previous_period(START, START)
        stage = period_comparison_facet(period, [])

        assert stage["$facet"]["prev"] == [match_nothing()]
        assert stage["$facet"]["current"] == [match_date_range(START, START)]


class TestDefaults:
    def test_first_or_default(self) -> None:
        assert first_or_default("$current.total") == {
            "$ifNull": [{"$arrayElemAt": ["$current.total", 0]}, 0]
        }

    def test_project_comparison(self) -> None:
        stage = project_comparison({"currentFilesProcessed": "current.total"})
        assert stage["$project"]["_id"] == 0
        assert stage["$project"]["currentFilesProcessed"] == first_or_default("$current.total")


class TestUnwind:
    def test_preserving(self) -> None:
        assert unwind("agent") == {
            "$unwind": {"path": "$agent", "preserveNullAndEmptyArrays": True}
        }

    def test_inner(self) -> None:
        assert unwind("content", preserve_empty=False) == {"$unwind": "$content"}


class TestToolCallStages:
    """Tests for tool call classification stages."""

    def test_unwind_with_filter(self) -> None:
        stages = unwind_tool_calls(mcp_name_filter())
        assert stages == [
            {"$unwind": "$content"},
            {"$match": {"content.type": "tool_call"}},
            {"$match": {"content.tool_call.name": {"$regex": "(_mcp_|::)"}}},
        ]

    def test_unwind_without_filter(self) -> None:
        assert len(unwind_tool_calls()) == 2

    def test_web_search_filter_is_case_insensitive(self) -> None:
        assert web_search_name_filter() == {
            "content.tool_call.name": {"$regex": "web_search", "$options": "i"}
        }

    def test_split_prefers_server_delimiter(self) -> None:
        first = split_mcp_tool_name()[0]["$addFields"]
        cond = first["delimiter"]["$cond"]
        assert cond["then"] == "::"
        assert cond["else"] == "_mcp_"


class TestJoins:
    """Tests for conversation/agent join stages."""

    def test_join_is_left_outer(self) -> None:
        stages = join_conversation_and_agent()
        assert stages[0]["$lookup"]["from"] == "conversations"
        assert stages[1] == unwind("conversation")
        assert stages[2]["$lookup"] == {
            "from": "agents",
            "localField": "conversation.agent_id",
            "foreignField": "id",
            "as": "agent",
        }
        assert stages[3] == unwind("agent")

    def test_resolution_condition_shared(self) -> None:
        fields = resolve_effective_model()["$addFields"]
        model_condition = fields["resolvedModel"]["$cond"][0]
        endpoint_condition = fields["endpoint"]["$cond"][0]
        assert {"$eq": ["$conversation.endpoint", "agents"]} in model_condition["$and"]
        assert endpoint_condition == model_condition

    @pytest.mark.parametrize(
        ("transaction", "model", "endpoint"),
        [
            (
                {
                    "model": "gpt-4o",
                    "conversation": {"endpoint": "agents", "agent_id": "a1"},
                    "agent": {"id": "a1", "model": "claude-3", "provider": "anthropic"},
                },
                "claude-3",
                "anthropic",
            ),
            (
                {"model": "gpt-4o", "conversation": {"endpoint": "agents", "agent_id": "gone"}},
                "gpt-4o",
                "agents",
            ),
            (
                {"model": "gpt-4o", "conversation": {"endpoint": "openAI"}},
                "gpt-4o",
                "openAI",
            ),
            ({"model": "gpt-4o"}, "gpt-4o", "direct"),
        ],
    )
    def test_effective_model_and_endpoint(
        self, transaction: dict[str, Any], model: str, endpoint: str
    ) -> None:
        [row] = apply_stages([resolve_effective_model()], [transaction])

        assert row["resolvedModel"] == model
        assert row["endpoint"] == endpoint
