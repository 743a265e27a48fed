"""Anomaly detection over expense history, budgets and income"""

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from finsight_gateway.domain.aggregates import (
    expenses,
    incomes,
    mean,
    monthly_aggregates,
    population_stddev,
)
from finsight_gateway.domain.models import SEVERITY_ORDER, Anomaly, Budget, Transaction
from finsight_gateway.domain.parameters import AnomalyParameters
from finsight_gateway.utils.date_utils import first_of_month, month_key

DEFAULT_PARAMETERS = AnomalyParameters()

# Relative to the mean; float noise around a constant history stays below it
ZERO_SPREAD_TOLERANCE = 1e-9


def _spike_severity(z_score: float, parameters: AnomalyParameters) -> Optional[str]:
    if z_score > parameters.critical_sigma:
        return "critical"
    elif z_score > parameters.high_sigma:
        return "high"
    return None


def _z_score(amount: float, history: Sequence[float]) -> float:
    """Distance above the history mean in stddevs; 0 when the history has no spread"""
    avg = mean(history)
    if amount <= avg:
        return 0.0
    spread = population_stddev(history)
    if spread <= avg * ZERO_SPREAD_TOLERANCE:
        return 0.0
    return (amount - avg) / spread


def detect_expense_spikes(
    transactions: Sequence[Transaction],
    parameters: AnomalyParameters = DEFAULT_PARAMETERS,
) -> List[Anomaly]:
    """
    Flag expenses far above the rest of their category.

    Each expense is compared with the mean and population stddev of the other
    expenses in the same category, so a single large outlier cannot inflate its
    own reference. Categories need `min_history` other data points, and a
    constant history (zero spread) yields no statistical anomaly.
    """
    by_category: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in expenses(transactions):
        by_category[txn.category_id].append(txn)

    anomalies = []
    for category_id, items in by_category.items():
        if len(items) - 1 < parameters.min_history:
            continue

        amounts = [t.amount for t in items]
        for index, txn in enumerate(items):
            others = amounts[:index] + amounts[index + 1:]
            z_score = _z_score(txn.amount, others)
            severity = _spike_severity(z_score, parameters)
            if severity is None:
                continue

            reference = mean(others)
            deviation = (txn.amount - reference) / reference * 100 if reference > 0 else 100.0
            anomalies.append(
                Anomaly(
                    id=f"spike-{txn.id}",
                    severity=severity,
                    type="expense_spike",
                    title="Critical expense detected" if severity == "critical" else "High expense detected",
                    description=(
                        f"Expense of {txn.amount:.2f} is {z_score:.1f} standard deviations above the "
                        f"category average of {reference:.2f}"
                    ),
                    amount=txn.amount,
                    date=txn.date,
                    deviation=round(deviation, 2),
                    category_id=category_id,
                    category_name=txn.category_name,
                    transaction_id=txn.id,
                    suggested_action=(
                        "Review whether this expense was necessary and consider an alert for this category."
                        if severity == "critical"
                        else "Keep an eye on this kind of expense and consider a monthly limit."
                    ),
                )
            )

    return anomalies


def detect_budget_overflows(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
) -> List[Anomaly]:
    """Flag (category, month) pairs whose spending exceeded the matching budget"""
    if not budgets:
        return []

    spent: Dict[Tuple[str, date], float] = defaultdict(float)
    latest: Dict[Tuple[str, date], Transaction] = {}
    for txn in expenses(transactions):
        key = (txn.category_id, first_of_month(txn.date))
        spent[key] += txn.amount
        if key not in latest or txn.date > latest[key].date:
            latest[key] = txn

    anomalies = []
    for budget in budgets:
        key = (budget.category_id, first_of_month(budget.month))
        total = spent.get(key, 0.0)
        limit = budget.limit_amount
        if total <= limit:
            continue

        deviation = (total - limit) / limit * 100 if limit > 0 else 100.0
        last_txn = latest[key]
        anomalies.append(
            Anomaly(
                id=f"budget-overflow-{budget.category_id}-{month_key(key[1])}",
                severity="moderate",
                type="budget_overflow",
                title="Budget exceeded",
                description=(
                    f"Spending of {total:.2f} exceeds the budget of {limit:.2f} "
                    f"for {month_key(key[1])} by {deviation:.0f}%"
                ),
                amount=round(total, 2),
                date=last_txn.date,
                deviation=round(deviation, 2),
                category_id=budget.category_id,
                category_name=last_txn.category_name,
                suggested_action="Review this category's expenses or adjust the budget.",
            )
        )

    return anomalies


def detect_unusual_categories(
    transactions: Sequence[Transaction],
    parameters: AnomalyParameters = DEFAULT_PARAMETERS,
) -> List[Anomaly]:
    """
    Flag rarely used categories with a high average expense.

    A category is rare when its expense count is below `unusual_frequency_share`
    of the average count per category. Needs `unusual_min_expenses` expenses in
    the window to judge frequency at all.
    """
    spending = expenses(transactions)
    if len(spending) < parameters.unusual_min_expenses:
        return []

    by_category: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in spending:
        by_category[txn.category_id].append(txn)

    average_count = len(spending) / len(by_category)
    rare_below = average_count * parameters.unusual_frequency_share

    anomalies = []
    for category_id, items in by_category.items():
        if len(items) >= rare_below:
            continue
        average_amount = mean([t.amount for t in items])
        if average_amount <= parameters.unusual_min_average:
            continue

        latest = max(items, key=lambda t: t.date)
        anomalies.append(
            Anomaly(
                id=f"unusual-category-{category_id}-{latest.date.isoformat()}",
                severity="moderate",
                type="unusual_category",
                title="Unusual category",
                description=f"Average expense of {average_amount:.2f} in a rarely used category",
                amount=round(average_amount, 2),
                date=latest.date,
                deviation=round((average_count - len(items)) / average_count * 100, 2),
                category_id=category_id,
                category_name=latest.category_name,
                suggested_action="Check this expense is correct; unusual categories can point to mistakes or fraud.",
            )
        )

    return anomalies


def detect_income_drops(
    transactions: Sequence[Transaction],
    parameters: AnomalyParameters = DEFAULT_PARAMETERS,
) -> List[Anomaly]:
    """Flag month-over-month income drops (> 30% high, > 50% critical)"""
    monthly = monthly_aggregates(incomes(transactions))
    if len(monthly) < 2:
        return []

    anomalies = []
    for previous, current in zip(monthly, monthly[1:]):
        if previous.income <= 0:
            continue
        drop = (previous.income - current.income) / previous.income
        if drop > parameters.income_drop_critical:
            severity, title = "critical", "Critical income drop"
        elif drop > parameters.income_drop_high:
            severity, title = "high", "Significant income drop"
        else:
            continue

        anomalies.append(
            Anomaly(
                id=f"income-drop-{month_key(current.month)}",
                severity=severity,
                type="income_drop",
                title=title,
                description=(
                    f"Income fell {drop * 100:.0f}% compared with the previous month "
                    f"({current.income:.2f} vs {previous.income:.2f})"
                ),
                amount=round(current.income, 2),
                date=current.month,
                deviation=round(drop * 100, 2),
                suggested_action="Find the cause of the drop and trim non-essential spending.",
            )
        )

    return anomalies


def deduplicate(anomalies: Sequence[Anomaly]) -> List[Anomaly]:
    """Keep one anomaly per transaction id (or anomaly id), highest severity first"""
    best: Dict[str, Anomaly] = {}
    for anomaly in anomalies:
        key = f"txn:{anomaly.transaction_id}" if anomaly.transaction_id else anomaly.id
        current = best.get(key)
        if current is None or SEVERITY_ORDER[anomaly.severity] < SEVERITY_ORDER[current.severity]:
            best[key] = anomaly
    return list(best.values())


def sort_anomalies(anomalies: Sequence[Anomaly]) -> List[Anomaly]:
    """Severity (critical, high, moderate), then most recent first"""
    by_date = sorted(anomalies, key=lambda a: a.date, reverse=True)
    return sorted(by_date, key=lambda a: SEVERITY_ORDER[a.severity])


def detect_anomalies(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
    period_months: int = 3,
    parameters: Optional[AnomalyParameters] = None,
) -> List[Anomaly]:
    """
    Main entry point: spikes, budget overruns, unusual categories and income
    drops, de-duplicated and sorted.

    `period_months` is unused: the caller already scoped `transactions` to the window.
    """
    parameters = parameters or DEFAULT_PARAMETERS

    found = []
    found.extend(detect_expense_spikes(transactions, parameters))
    found.extend(detect_budget_overflows(transactions, budgets))
    found.extend(detect_unusual_categories(transactions, parameters))
    found.extend(detect_income_drops(transactions, parameters))

    return sort_anomalies(deduplicate(found))
