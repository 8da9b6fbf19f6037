"""Request parameter models for chat_stats.

Query strings arrive as flat string mappings. These models validate them
into typed windows before any datastore call is made.
"""

from datetime import UTC, datetime
from typing import Annotated, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from chat_stats.models.period import DateRange, TimeArea, TimeGranularity

__all__ = [
    "AgentSeriesQuery",
    "DateRangeQuery",
    "HeatMapQuery",
    "INVALID_DATE_MESSAGE",
    "ModelSeriesQuery",
    "TimeSeriesQuery",
    "UserDetailQuery",
    "parse_iso_datetime",
]

INVALID_DATE_MESSAGE = "Invalid date format. Use ISO-8601 (YYYY-MM-DDTHH:mm:ssZ)"


def parse_iso_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 date or instant; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            raise ValueError(INVALID_DATE_MESSAGE) from None
    else:
        raise ValueError(INVALID_DATE_MESSAGE)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


IsoDatetime = Annotated[datetime, BeforeValidator(parse_iso_datetime)]


class DateRangeQuery(BaseModel):
    """``startDate``/``endDate`` (or ``start``/``end``) parameters."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    start_date: IsoDatetime = Field(validation_alias=AliasChoices("startDate", "start"))
    end_date: IsoDatetime = Field(validation_alias=AliasChoices("endDate", "end"))

    @model_validator(mode="after")
    def _check_order(self) -> "DateRangeQuery":
        if self.start_date > self.end_date:
            raise ValueError("Start date cannot be after end date")
        return self

    def to_date_range(self) -> DateRange:
        return DateRange(start_date=self.start_date, end_date=self.end_date)


class HeatMapQuery(DateRangeQuery):
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown IANA timezone '{value}'") from None
        return value


class TimeSeriesQuery(HeatMapQuery):
    """Date range plus chart bucketing options.

    When ``granularity`` is absent it is derived from ``groupRange``,
    or from the span of the window.
    """

    granularity: TimeGranularity | None = None
    group_range: TimeArea | None = Field(
        default=None,
        validation_alias=AliasChoices("groupRange", "group_range"),
    )


class ModelSeriesQuery(TimeSeriesQuery):
    model: str = Field(min_length=1)

    @field_validator("model", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class AgentSeriesQuery(TimeSeriesQuery):
    agent_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("agentName", "agent_name"),
    )


class UserDetailQuery(DateRangeQuery):
    user_id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("userId", "user_id"),
    )
