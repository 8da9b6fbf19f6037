"""Unit tests for query parameter parsing."""

from datetime import UTC, datetime, timedelta

import pytest

from chat_stats.errors import InvalidQueryError
from chat_stats.models.period import HeatmapGranularity, TimeGranularity
from chat_stats.services.query_parsing import (
    parse_agent_series,
    parse_date_range,
    parse_heatmap,
    parse_model_series,
    parse_period,
    parse_series,
    parse_user_detail,
)


class TestParseDateRange:
    """Tests for date window parsing."""

    def test_instants(self, january_params: dict[str, str]) -> None:
        window = parse_date_range(january_params)
        assert window.start_date == datetime(2024, 1, 1, tzinfo=UTC)
        assert window.end_date == datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC)

    def test_short_parameter_names(self) -> None:
        window = parse_date_range({"start": "2024-03-01", "end": "2024-03-02"})
        assert window.start_date == datetime(2024, 3, 1, tzinfo=UTC)
        assert window.end_date == datetime(2024, 3, 2, tzinfo=UTC)

    def test_offsets_preserved(self) -> None:
        window = parse_date_range(
            {"startDate": "2024-03-01T00:00:00+02:00", "endDate": "2024-03-02T00:00:00+02:00"}
        )
        assert window.start_date == datetime(2024, 2, 29, 22, tzinfo=UTC)

    def test_missing_start(self) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_date_range({"endDate": "2024-01-31T00:00:00Z"})

        assert exc_info.value.param == "startDate"
        assert exc_info.value.reason == "Missing required query parameter 'startDate'"

    def test_empty_value_counts_as_missing(self) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_date_range({"startDate": "2024-01-01T00:00:00Z", "endDate": ""})
        assert exc_info.value.param == "endDate"

    def test_unparseable_date(self) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_date_range({"startDate": "yesterday", "endDate": "2024-01-31T00:00:00Z"})

        assert exc_info.value.param == "startDate"
        assert exc_info.value.reason.startswith("Invalid date format")

    def test_reversed_dates(self) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_date_range(
                {"startDate": "2024-02-01T00:00:00Z", "endDate": "2024-01-01T00:00:00Z"}
            )

        assert exc_info.value.param == "startDate"
        assert exc_info.value.reason == "Start date cannot be after end date"

    def test_error_payload(self) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_date_range({})

        payload = exc_info.value.to_dict()
        assert payload["param"] == "startDate"
        assert {d["param"] for d in payload["details"]} == {"startDate", "endDate"}


class TestParsePeriod:
    def test_previous_window(self, january_params: dict[str, str]) -> None:
        period = parse_period(january_params)
        assert period.prev_end == period.start_date
        assert period.prev_start == period.start_date - (period.end_date - period.start_date)


class TestParseSeries:
    """Tests for chart option parsing."""

    def test_explicit_granularity(self, january_params: dict[str, str]) -> None:
        request = parse_series({**january_params, "granularity": "hour"})
        assert request.granularity == TimeGranularity.HOUR
        assert request.timezone == "UTC"

    def test_group_range_fallback(self, january_params: dict[str, str]) -> None:
        request = parse_series({**january_params, "groupRange": "year"})
        assert request.granularity == TimeGranularity.MONTH

    def test_derived_from_span(self, january_params: dict[str, str]) -> None:
        assert parse_series(january_params).granularity == TimeGranularity.DAY

    def test_invalid_granularity(self, january_params: dict[str, str]) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_series({**january_params, "granularity": "week"})
        assert exc_info.value.param == "granularity"

    def test_unknown_timezone(self, january_params: dict[str, str]) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_series({**january_params, "timezone": "Mars/Olympus"})
        assert exc_info.value.param == "timezone"
        assert "Mars/Olympus" in exc_info.value.reason


class TestParseSubjects:
    """Tests for model, agent and user parameters."""

    def test_model_required(self, january_params: dict[str, str]) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_model_series(january_params)
        assert exc_info.value.param == "model"

    def test_blank_model_rejected(self, january_params: dict[str, str]) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_model_series({**january_params, "model": "   "})
        assert exc_info.value.reason == "model is required"

    def test_model_series(self, january_params: dict[str, str]) -> None:
        request = parse_model_series(
            {**january_params, "model": "gpt-4o", "timezone": "Asia/Tokyo"}
        )
        assert request.model == "gpt-4o"
        assert request.timezone == "Asia/Tokyo"
        assert request.granularity == TimeGranularity.DAY

    def test_agent_series(self, january_params: dict[str, str]) -> None:
        request = parse_agent_series({**january_params, "agentName": "Researcher"})
        assert request.agent_name == "Researcher"

    def test_agent_name_required(self, january_params: dict[str, str]) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_agent_series(january_params)
        assert exc_info.value.param == "agentName"

    def test_user_detail(self, january_params: dict[str, str]) -> None:
        request = parse_user_detail({**january_params, "userId": "u-1"})
        assert request.user_id == "u-1"
        assert request.window.start_date == datetime(2024, 1, 1, tzinfo=UTC)

    def test_user_id_required(self, january_params: dict[str, str]) -> None:
        with pytest.raises(InvalidQueryError) as exc_info:
            parse_user_detail(january_params)
        assert exc_info.value.param == "userId"


class TestParseHeatmap:
    def test_forty_day_window_is_daily(self) -> None:
        start = datetime(2024, 1, 1, tzinfo=UTC)
        end = start + timedelta(days=40)
        request = parse_heatmap({"startDate": start.isoformat(), "endDate": end.isoformat()})

        assert request.granularity == HeatmapGranularity.DAILY
        assert request.timezone == "UTC"

    def test_single_day_is_hourly(self) -> None:
        request = parse_heatmap(
            {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-01T23:59:59Z"}
        )
        assert request.granularity == HeatmapGranularity.HOURLY
