"""Aggregation helpers shared by the analytics engines"""

import math
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from finsight_gateway.domain.models import CategoryTotal, MonthlyAggregate, Transaction
from finsight_gateway.utils.date_utils import add_months, first_of_month, generate_month_range


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence"""
    return sum(values) / len(values) if values else 0.0


def population_stddev(values: Sequence[float]) -> float:
    """Population standard deviation, 0.0 for an empty sequence"""
    if not values:
        return 0.0
    avg = mean(values)
    return math.sqrt(sum((v - avg) ** 2 for v in values) / len(values))


def expenses(transactions: Iterable[Transaction]) -> List[Transaction]:
    return [t for t in transactions if t.is_expense]


def incomes(transactions: Iterable[Transaction]) -> List[Transaction]:
    return [t for t in transactions if t.is_income]


def total_income(transactions: Iterable[Transaction]) -> float:
    return sum(t.amount for t in transactions if t.is_income)


def total_expenses(transactions: Iterable[Transaction]) -> float:
    return sum(t.amount for t in transactions if t.is_expense)


def category_totals(transactions: Iterable[Transaction], divisor: float = 1.0) -> List[CategoryTotal]:
    """
    Expense totals per category, largest first.

    `divisor` turns period sums into monthly averages (pass the number of months).
    """
    totals: Dict[str, float] = defaultdict(float)
    names: Dict[str, str] = {}
    for txn in transactions:
        if not txn.is_expense:
            continue
        totals[txn.category_id] += txn.amount
        if txn.category_name and txn.category_id not in names:
            names[txn.category_id] = txn.category_name

    divisor = divisor if divisor > 0 else 1.0
    result = [
        CategoryTotal(category_id=cat, total=total / divisor, category_name=names.get(cat))
        for cat, total in totals.items()
    ]
    return sorted(result, key=lambda c: c.total, reverse=True)


def monthly_aggregates(
    transactions: Iterable[Transaction],
    until: Optional[date] = None,
) -> List[MonthlyAggregate]:
    """
    Income/expense totals for every calendar month spanned by the transactions.

    Months without any transaction inside the span are reported as zero months.
    With `until` (an exclusive window end) the span runs through the month
    before it, so trailing months without activity count as zero months.
    """
    income_by_month: Dict[date, float] = defaultdict(float)
    expense_by_month: Dict[date, float] = defaultdict(float)
    months_seen = set()

    for txn in transactions:
        month = first_of_month(txn.date)
        months_seen.add(month)
        if txn.is_income:
            income_by_month[month] += txn.amount
        elif txn.is_expense:
            expense_by_month[month] += txn.amount

    if not months_seen:
        return []

    last_month = max(months_seen)
    if until is not None:
        last_month = max(last_month, add_months(first_of_month(until), -1))

    return [
        MonthlyAggregate(
            month=month,
            income=income_by_month.get(month, 0.0),
            expenses=expense_by_month.get(month, 0.0),
        )
        for month in generate_month_range(min(months_seen), last_month)
    ]


def linear_trend(values: Sequence[float]) -> tuple[float, float]:
    """
    Ordinary least squares fit of values against their 0-based index.

    Returns (slope, intercept). Fewer than two points gives a flat line.
    """
    n = len(values)
    if n == 0:
        return 0.0, 0.0

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0, sum_y / n

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept
