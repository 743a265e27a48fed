"""Unit tests for calendar-month helpers"""

import pytest
from datetime import date
from finsight_gateway.domain.exceptions import InvalidPeriodError
from finsight_gateway.utils.date_utils import (
    add_months,
    first_of_month,
    generate_month_range,
    month_key,
    period_window,
)


def test_first_of_month():
    assert first_of_month(date(2025, 2, 28)) == date(2025, 2, 1)


@pytest.mark.parametrize(
    "month,offset,expected",
    [
        (date(2025, 1, 1), 1, date(2025, 2, 1)),
        (date(2025, 12, 1), 1, date(2026, 1, 1)),
        (date(2025, 1, 1), -1, date(2024, 12, 1)),
        (date(2025, 3, 1), -14, date(2024, 1, 1)),
        (date(2025, 3, 1), 0, date(2025, 3, 1)),
    ],
)
def test_add_months(month, offset, expected):
    assert add_months(month, offset) == expected


def test_month_key():
    assert month_key(date(2025, 4, 15)) == "2025-04"


def test_generate_month_range_inclusive():
    months = generate_month_range(date(2024, 11, 20), date(2025, 2, 3))

    assert months == [date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1), date(2025, 2, 1)]


def test_generate_month_range_empty_when_reversed():
    assert generate_month_range(date(2025, 3, 1), date(2025, 1, 1)) == []


def test_period_window_excludes_running_month():
    """Test the window covers whole months before the current one"""
    assert period_window(date(2025, 4, 15), 3) == (date(2025, 1, 1), date(2025, 4, 1))


def test_period_window_shifted_back():
    assert period_window(date(2025, 4, 15), 3, months_ago=3) == (date(2024, 10, 1), date(2025, 1, 1))


@pytest.mark.parametrize("period_months,months_ago", [(0, 0), (-1, 0), (3, -1)])
def test_period_window_rejects_invalid_arguments(period_months, months_ago):
    with pytest.raises(InvalidPeriodError):
        period_window(date(2025, 4, 15), period_months, months_ago)
