"""Query parameter parsing for chat_stats.

Turns raw query-string mappings into validated windows and chart options.
Every failure is raised as InvalidQueryError before any datastore call.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from chat_stats.domain.period import (
    calculate_previous_period,
    granularity_for_time_area,
    resolve_granularity,
    resolve_heatmap_granularity,
)
from chat_stats.errors import InvalidQueryError
from chat_stats.logging import get_logger
from chat_stats.models.period import (
    DateRange,
    HeatmapGranularity,
    PeriodComparison,
    TimeGranularity,
)
from chat_stats.models.queries import (
    AgentSeriesQuery,
    DateRangeQuery,
    HeatMapQuery,
    ModelSeriesQuery,
    TimeSeriesQuery,
    UserDetailQuery,
)

__all__ = [
    "AgentSeriesRequest",
    "HeatMapRequest",
    "ModelSeriesRequest",
    "SeriesRequest",
    "UserDetailRequest",
    "parse_agent_series",
    "parse_date_range",
    "parse_heatmap",
    "parse_model_series",
    "parse_period",
    "parse_series",
    "parse_user_detail",
]

logger = get_logger(__name__)

QueryT = TypeVar("QueryT", bound=BaseModel)

# Order errors are model-level; report them against the start parameter
_MODEL_LEVEL_PARAM = "startDate"


@dataclass(frozen=True)
class SeriesRequest:
    """Window plus bucketing options for a chart."""

    window: DateRange
    granularity: TimeGranularity
    timezone: str


@dataclass(frozen=True)
class ModelSeriesRequest(SeriesRequest):
    model: str


@dataclass(frozen=True)
class AgentSeriesRequest(SeriesRequest):
    agent_name: str


@dataclass(frozen=True)
class HeatMapRequest:
    window: DateRange
    timezone: str
    granularity: HeatmapGranularity


@dataclass(frozen=True)
class UserDetailRequest:
    user_id: str
    window: DateRange


def _describe(error: Mapping[str, Any]) -> tuple[str, str]:
    """Map one pydantic error to ``(param, reason)``."""
    loc = error.get("loc") or ()
    param = str(loc[0]) if loc else _MODEL_LEVEL_PARAM
    kind = error.get("type")

    if kind == "missing":
        return param, f"Missing required query parameter '{param}'"
    if kind == "string_too_short":
        return param, f"{param} is required"
    if kind == "value_error":
        ctx = error.get("ctx") or {}
        if "error" in ctx:
            return param, str(ctx["error"])
    return param, str(error.get("msg", "Invalid value"))


def _validate(query_cls: type[QueryT], params: Mapping[str, Any]) -> QueryT:
    # Empty query-string values count as absent
    present = {key: value for key, value in params.items() if value not in (None, "")}
    try:
        return query_cls.model_validate(present)
    except ValidationError as e:
        details = [
            {"param": param, "reason": reason}
            for param, reason in (_describe(err) for err in e.errors())
        ]
        first = details[0]
        logger.debug("invalid_query", param=first["param"], reason=first["reason"])
        raise InvalidQueryError(first["param"], first["reason"], details) from e


def _series_granularity(query: TimeSeriesQuery) -> TimeGranularity:
    """Explicit granularity, else the preset range's, else one derived from the span."""
    if query.granularity is not None:
        return query.granularity
    if query.group_range is not None:
        return granularity_for_time_area(query.group_range)
    return resolve_granularity(query.start_date, query.end_date)


def parse_date_range(params: Mapping[str, Any]) -> DateRange:
    return _validate(DateRangeQuery, params).to_date_range()


def parse_period(params: Mapping[str, Any]) -> PeriodComparison:
    """Current window plus the equally long window right before it."""
    query = _validate(DateRangeQuery, params)
    return calculate_previous_period(query.start_date, query.end_date)


def parse_series(params: Mapping[str, Any]) -> SeriesRequest:
    query = _validate(TimeSeriesQuery, params)
    return SeriesRequest(
        window=query.to_date_range(),
        granularity=_series_granularity(query),
        timezone=query.timezone,
    )


def parse_model_series(params: Mapping[str, Any]) -> ModelSeriesRequest:
    query = _validate(ModelSeriesQuery, params)
    return ModelSeriesRequest(
        window=query.to_date_range(),
        granularity=_series_granularity(query),
        timezone=query.timezone,
        model=query.model,
    )


def parse_agent_series(params: Mapping[str, Any]) -> AgentSeriesRequest:
    query = _validate(AgentSeriesQuery, params)
    return AgentSeriesRequest(
        window=query.to_date_range(),
        granularity=_series_granularity(query),
        timezone=query.timezone,
        agent_name=query.agent_name,
    )


def parse_heatmap(params: Mapping[str, Any]) -> HeatMapRequest:
    query = _validate(HeatMapQuery, params)
    return HeatMapRequest(
        window=query.to_date_range(),
        timezone=query.timezone,
        granularity=resolve_heatmap_granularity(query.start_date, query.end_date),
    )


def parse_user_detail(params: Mapping[str, Any]) -> UserDetailRequest:
    query = _validate(UserDetailQuery, params)
    return UserDetailRequest(user_id=query.user_id, window=query.to_date_range())
