"""Period math for chat_stats.

Pure functions for comparison windows and chart bucketing.
"""

import math
from datetime import datetime, timedelta

from chat_stats.models.period import (
    HeatmapGranularity,
    PeriodComparison,
    TimeArea,
    TimeGranularity,
)

__all__ = [
    "calculate_previous_period",
    "calculate_trend",
    "granularity_for_time_area",
    "resolve_granularity",
    "resolve_heatmap_granularity",
]

# Upper bounds (inclusive, in days) for each chart granularity
HOURLY_CHART_MAX_DAYS = 2
DAILY_CHART_MAX_DAYS = 90

HOURLY_HEATMAP_MAX_DAYS = 1
DAILY_HEATMAP_MAX_DAYS = 90
WEEKLY_HEATMAP_MAX_DAYS = 365

_TIME_AREA_GRANULARITY: dict[TimeArea, TimeGranularity] = {
    TimeArea.DAY: TimeGranularity.HOUR,
    TimeArea.WEEK: TimeGranularity.DAY,
    TimeArea.MONTH: TimeGranularity.DAY,
    TimeArea.YEAR: TimeGranularity.MONTH,
}


def calculate_previous_period(start: datetime, end: datetime) -> PeriodComparison:
    """Build the comparison window for ``[start, end]``.

    The previous window has the same duration and ends exactly where the
    current one starts. A zero-length window yields an empty previous
    window (``prev_start == prev_end == start``).

    Args:
        start: Current window start
        end: Current window end

    Returns:
        PeriodComparison with both windows
    """
    duration = end - start
    return PeriodComparison(
        start_date=start,
        end_date=end,
        prev_start=start - duration,
        prev_end=start,
    )


def _span_days(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(days=1)


def resolve_granularity(start: datetime, end: datetime) -> TimeGranularity:
    """Chart bucket size for a window: hour up to 2 days, day up to 90, else month."""
    days = _span_days(start, end)
    if days <= HOURLY_CHART_MAX_DAYS:
        return TimeGranularity.HOUR
    if days <= DAILY_CHART_MAX_DAYS:
        return TimeGranularity.DAY
    return TimeGranularity.MONTH


def resolve_heatmap_granularity(start: datetime, end: datetime) -> HeatmapGranularity:
    """Heatmap display granularity for a window.

    Uses its own thresholds: hourly up to 1 day, daily up to 90 days,
    weekly up to 365 days, monthly beyond.
    """
    days = _span_days(start, end)
    if days <= HOURLY_HEATMAP_MAX_DAYS:
        return HeatmapGranularity.HOURLY
    if days <= DAILY_HEATMAP_MAX_DAYS:
        return HeatmapGranularity.DAILY
    if days <= WEEKLY_HEATMAP_MAX_DAYS:
        return HeatmapGranularity.WEEKLY
    return HeatmapGranularity.MONTHLY


def granularity_for_time_area(area: TimeArea) -> TimeGranularity:
    """Map a preset range selector to the bucket size its chart uses."""
    return _TIME_AREA_GRANULARITY[area]


def calculate_trend(current: float, prev: float) -> float | None:
    """Percentage change from prev to current, rounded to two decimals.

    Returns 0.0 when both are zero and None when there is no previous
    value to compare against.
    """
    if prev == 0:
        return 0.0 if current == 0 else None

    trend = round((current - prev) / prev * 100, 2)
    if not math.isfinite(trend):
        return None
    return trend
