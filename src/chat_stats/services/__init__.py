"""Request handling services for chat_stats."""

from chat_stats.services.query_parsing import (
    AgentSeriesRequest,
    HeatMapRequest,
    ModelSeriesRequest,
    SeriesRequest,
    UserDetailRequest,
    parse_agent_series,
    parse_date_range,
    parse_heatmap,
    parse_model_series,
    parse_period,
    parse_series,
    parse_user_detail,
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
