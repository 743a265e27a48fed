"""Calendar-month manipulation utilities"""

from datetime import date
from typing import List, Tuple

from finsight_gateway.domain.exceptions import InvalidPeriodError


def first_of_month(day: date) -> date:
    """Return the first day of the month containing `day`"""
    return day.replace(day=1)


def add_months(month: date, months: int) -> date:
    """Shift a first-of-month date by a (possibly negative) number of months"""
    index = month.year * 12 + (month.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_key(day: date) -> str:
    """Format a date as YYYY-MM"""
    return f"{day.year:04d}-{day.month:02d}"


def generate_month_range(start: date, end: date) -> List[date]:
    """Generate first-of-month dates from start to end (inclusive)"""
    current = first_of_month(start)
    last = first_of_month(end)
    months = []
    while current <= last:
        months.append(current)
        current = add_months(current, 1)
    return months


def period_window(today: date, period_months: int, months_ago: int = 0) -> Tuple[date, date]:
    """
    Half-open window [start, end) of whole calendar months.

    The end is the first day of the current month shifted back by `months_ago`,
    so the running month is never part of the window.
    """
    if period_months < 1:
        raise InvalidPeriodError(f"period_months must be positive, got {period_months}")
    if months_ago < 0:
        raise InvalidPeriodError(f"months_ago cannot be negative, got {months_ago}")

    end = add_months(first_of_month(today), -months_ago)
    start = add_months(end, -period_months)
    return start, end
