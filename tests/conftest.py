"""Shared test fixtures for chat_stats.

This module provides pytest fixtures used across all tests.
"""

from datetime import UTC, datetime

import pytest

from chat_stats.domain.period import calculate_previous_period
from chat_stats.models.period import DateRange, PeriodComparison
from tests.mocks.mock_mongo import MockCollectionProvider


# Mock fixtures
@pytest.fixture
def provider() -> MockCollectionProvider:
    """Create mock collection provider."""
    return MockCollectionProvider()


# Sample data fixtures
@pytest.fixture
def january() -> DateRange:
    """Create a 31-day window covering January 2024."""
    return DateRange(
        start_date=datetime(2024, 1, 1, tzinfo=UTC),
        end_date=datetime(2024, 1, 31, 23, 59, 59, tzinfo=UTC),
    )


@pytest.fixture
def january_period(january: DateRange) -> PeriodComparison:
    """Create January 2024 with its preceding comparison window."""
    return calculate_previous_period(january.start_date, january.end_date)


@pytest.fixture
def january_params() -> dict[str, str]:
    """Create raw query parameters for January 2024."""
    return {"startDate": "2024-01-01T00:00:00Z", "endDate": "2024-01-31T23:59:59Z"}
