"""Date window models for chat_stats.

These models describe the time windows every statistic is computed over.
"""

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

__all__ = [
    "DateRange",
    "HeatmapGranularity",
    "PeriodComparison",
    "TimeArea",
    "TimeGranularity",
]


class TimeGranularity(StrEnum):
    """Chart bucket size for time series statistics."""

    HOUR = "hour"
    DAY = "day"
    MONTH = "month"


class HeatmapGranularity(StrEnum):
    """Display granularity for the request heatmap.

    Distinct from TimeGranularity: the heatmap has its own thresholds
    and adds a weekly level.
    """

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TimeArea(StrEnum):
    """Preset range selector sent by chart clients as ``groupRange``."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class DateRange(BaseModel, frozen=True):
    """Inclusive ``[start_date, end_date]`` window.

    Attributes:
        start_date: Window start (inclusive)
        end_date: Window end (inclusive)
    """

    start_date: datetime
    end_date: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "DateRange":
        if self.start_date > self.end_date:
            raise ValueError("Start date cannot be after end date")
        return self

    @property
    def duration(self) -> timedelta:
        return self.end_date - self.start_date


class PeriodComparison(DateRange, frozen=True):
    """Current window plus the equal-length window immediately before it.

    Attributes:
        prev_start: Previous window start
        prev_end: Previous window end, always equal to start_date
    """

    prev_start: datetime = Field(description="start_date - (end_date - start_date)")
    prev_end: datetime = Field(description="Equal to start_date")

    @property
    def has_previous(self) -> bool:
        """False for zero-duration windows, which have no previous data."""
        return self.prev_end > self.prev_start

    @property
    def previous(self) -> DateRange:
        return DateRange(start_date=self.prev_start, end_date=self.prev_end)
