"""Aggregation pipeline builders for chat_stats.

Each builder returns one typed stage (or a short list of stages).
Repositories compose them into complete pipelines.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, TypedDict

from chat_stats.models.period import DateRange, PeriodComparison, TimeGranularity

__all__ = [
    "BUCKET_FIELDS",
    "DATE_FORMATS",
    "AddFieldsStage",
    "CountStage",
    "FacetStage",
    "GroupStage",
    "LimitStage",
    "LookupStage",
    "MatchStage",
    "Pipeline",
    "ProjectStage",
    "SortStage",
    "Stage",
    "UnwindStage",
    "abs_sum",
    "abs_sum_where",
    "add_fields",
    "add_time_field",
    "array_or_empty",
    "bucket_field",
    "count",
    "count_distinct",
    "count_where",
    "date_bucket",
    "facet",
    "first_or_default",
    "group",
    "limit",
    "lookup",
    "match",
    "match_date_range",
    "match_nothing",
    "match_window",
    "period_branches",
    "period_comparison_facet",
    "project",
    "project_comparison",
    "sort_by",
    "sum_message_tokens",
    "unwind",
]

# Stage variants; "$" keys need the functional TypedDict form
MatchStage = TypedDict("MatchStage", {"$match": dict[str, Any]})
GroupStage = TypedDict("GroupStage", {"$group": dict[str, Any]})
ProjectStage = TypedDict("ProjectStage", {"$project": dict[str, Any]})
AddFieldsStage = TypedDict("AddFieldsStage", {"$addFields": dict[str, Any]})
FacetStage = TypedDict("FacetStage", {"$facet": dict[str, list[Any]]})
LookupStage = TypedDict("LookupStage", {"$lookup": dict[str, Any]})
UnwindStage = TypedDict("UnwindStage", {"$unwind": str | dict[str, Any]})
SortStage = TypedDict("SortStage", {"$sort": dict[str, int]})
LimitStage = TypedDict("LimitStage", {"$limit": int})
CountStage = TypedDict("CountStage", {"$count": str})

Stage = (
    MatchStage
    | GroupStage
    | ProjectStage
    | AddFieldsStage
    | FacetStage
    | LookupStage
    | UnwindStage
    | SortStage
    | LimitStage
    | CountStage
)
Pipeline = list[Stage]

DATE_FIELD = "createdAt"

DATE_FORMATS: dict[TimeGranularity, str] = {
    TimeGranularity.HOUR: "%d, %H:00",
    TimeGranularity.DAY: "%Y-%m-%d",
    TimeGranularity.MONTH: "%Y-%m",
}

# Output field holding the bucket key, per granularity
BUCKET_FIELDS: dict[TimeGranularity, str] = {
    TimeGranularity.HOUR: "hour",
    TimeGranularity.DAY: "day",
    TimeGranularity.MONTH: "month",
}


# --- Matching ---------------------------------------------------------------


def match(filters: Mapping[str, Any]) -> MatchStage:
    return {"$match": dict(filters)}


def match_date_range(
    start: datetime,
    end: datetime,
    additional_filters: Mapping[str, Any] | None = None,
) -> MatchStage:
    """Restrict to ``createdAt`` in ``[start, end]``, both ends inclusive."""
    return {
        "$match": {
            DATE_FIELD: {"$gte": start, "$lte": end},
            **(additional_filters or {}),
        }
    }


def match_window(
    window: DateRange,
    additional_filters: Mapping[str, Any] | None = None,
) -> MatchStage:
    return match_date_range(window.start_date, window.end_date, additional_filters)


def match_nothing() -> MatchStage:
    """A match that no document passes."""
    return {"$match": {"$expr": False}}


# --- Time buckets -----------------------------------------------------------


def bucket_field(granularity: TimeGranularity | str) -> str:
    """Output field name for a granularity.

    Raises:
        ValueError: If granularity is not one of hour, day, month
    """
    return BUCKET_FIELDS[TimeGranularity(granularity)]


def date_bucket(
    granularity: TimeGranularity | str,
    timezone: str = "UTC",
    date_field: str = f"${DATE_FIELD}",
) -> dict[str, Any]:
    """Expression rendering a timestamp as a bucket key in ``timezone``."""
    return {
        "$dateToString": {
            "format": DATE_FORMATS[TimeGranularity(granularity)],
            "date": date_field,
            "timezone": timezone,
        }
    }


def add_time_field(
    granularity: TimeGranularity | str,
    timezone: str = "UTC",
    date_field: str = f"${DATE_FIELD}",
) -> AddFieldsStage:
    """Add the bucket key under the field named after the granularity."""
    return {
        "$addFields": {
            bucket_field(granularity): date_bucket(granularity, timezone, date_field),
        }
    }


# --- Period comparison ------------------------------------------------------


def facet(branches: Mapping[str, Sequence[Stage]]) -> FacetStage:
    return {"$facet": {name: list(stages) for name, stages in branches.items()}}


def period_branches(
    period: PeriodComparison,
    stages: Sequence[Stage],
    additional_filters: Mapping[str, Any] | None = None,
    names: tuple[str, str] = ("current", "prev"),
) -> dict[str, list[Stage]]:
    """Facet branches running the same stages over both windows.

    The two branches differ only in their date filter. A zero-length
    period has no previous window, so its previous branch matches nothing.

    Args:
        period: Current and previous windows
        stages: Stages applied after the date filter in both branches
        additional_filters: Extra equality/regex filters merged into the match
        names: Branch names for the current and previous window
    """
    current_name, prev_name = names
    prev_match = (
        match_window(period.previous, additional_filters)
        if period.has_previous
        else match_nothing()
    )
    return {
        current_name: [match_window(period, additional_filters), *stages],
        prev_name: [prev_match, *stages],
    }


def period_comparison_facet(
    period: PeriodComparison,
    stages: Sequence[Stage],
    additional_filters: Mapping[str, Any] | None = None,
) -> FacetStage:
    """``$facet`` with ``current`` and ``prev`` branches over the same stages."""
    return facet(period_branches(period, stages, additional_filters))


def first_or_default(path: str, default: Any = 0) -> dict[str, Any]:
    """First element of an array field, or ``default`` when it is empty.

    Facet branches over no documents yield ``[]``, never a zeroed row.
    """
    return {"$ifNull": [{"$arrayElemAt": [path, 0]}, default]}


def project_comparison(fields: Mapping[str, str], default: Any = 0) -> ProjectStage:
    """Flatten facet branches into one row with zero defaults.

    Args:
        fields: Output field name -> ``branch.field`` path inside the facet
        default: Value for branches that produced no rows
    """
    return {
        "$project": {
            "_id": 0,
            **{name: first_or_default(f"${path}", default) for name, path in fields.items()},
        }
    }


# --- Grouping and counting --------------------------------------------------


def group(group_id: Any, **accumulators: Any) -> GroupStage:
    return {"$group": {"_id": group_id, **accumulators}}


def count(field: str) -> CountStage:
    return {"$count": field}


def count_distinct(field: str, count_field: str = "count") -> list[Stage]:
    """Number of distinct values of ``field``: group by it, then count groups."""
    return [group(f"${field}"), count(count_field)]


def count_where(condition: Any) -> dict[str, Any]:
    return {"$sum": {"$cond": [condition, 1, 0]}}


def abs_sum(field: str = "$rawAmount") -> dict[str, Any]:
    """Sum of absolute values; the sign of ``rawAmount`` carries no meaning."""
    return {"$sum": {"$abs": field}}


def abs_sum_where(condition: Any, field: str = "$rawAmount") -> dict[str, Any]:
    return {"$sum": {"$cond": [condition, {"$abs": field}, 0]}}


def sum_message_tokens(group_id: Any = None) -> GroupStage:
    """Message count plus token and summary token sums."""
    return group(
        group_id,
        totalMessages={"$sum": 1},
        totalTokenCount={"$sum": "$tokenCount"},
        totalSummaryTokenCount={"$sum": "$summaryTokenCount"},
    )


# --- Shaping ----------------------------------------------------------------


def add_fields(**fields: Any) -> AddFieldsStage:
    return {"$addFields": fields}


def project(**fields: Any) -> ProjectStage:
    return {"$project": fields}


def lookup(from_: str, local_field: str, foreign_field: str, as_: str) -> LookupStage:
    return {
        "$lookup": {
            "from": str(from_),
            "localField": local_field,
            "foreignField": foreign_field,
            "as": as_,
        }
    }


def unwind(path: str, preserve_empty: bool = True) -> UnwindStage:
    """Unwind an array field.

    Joined arrays are unwound preserving documents without a match, so
    joins stay left-outer.
    """
    if not preserve_empty:
        return {"$unwind": f"${path}"}
    return {"$unwind": {"path": f"${path}", "preserveNullAndEmptyArrays": True}}


def sort_by(fields: Mapping[str, int]) -> SortStage:
    return {"$sort": dict(fields)}


def limit(n: int) -> LimitStage:
    return {"$limit": n}


def array_or_empty(path: str) -> dict[str, Any]:
    """The array at ``path``, or ``[]`` when it is missing or not an array."""
    return {"$cond": [{"$isArray": path}, path, []]}
