"""Financial health score engine - composite 0-100 score from five weighted sub-scores"""

from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from finsight_gateway.domain.aggregates import (
    mean,
    monthly_aggregates,
    population_stddev,
    total_expenses,
    total_income,
)
from finsight_gateway.domain.models import (
    CREDIT,
    Budget,
    Card,
    HealthScoreBreakdown,
    HealthScoreResult,
    Transaction,
)
from finsight_gateway.domain.parameters import HealthScoreParameters
from finsight_gateway.utils.date_utils import first_of_month

MAX_CONTROLE_GASTOS = 30.0
MAX_POUPANCA_RESERVAS = 25.0
MAX_PREVISIBILIDADE = 20.0
MAX_DIVIDAS = 15.0
MAX_DIVERSIFICACAO = 10.0

# Half of every weight: used when there is nothing to score
NEUTRAL_BREAKDOWN = HealthScoreBreakdown(
    controle_gastos=MAX_CONTROLE_GASTOS / 2,
    poupanca_reservas=MAX_POUPANCA_RESERVAS / 2,
    previsibilidade=MAX_PREVISIBILIDADE / 2,
    dividas=MAX_DIVIDAS / 2,
    diversificacao=MAX_DIVERSIFICACAO / 2,
)

DEFAULT_PARAMETERS = HealthScoreParameters()


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def budget_overrun_share(transactions: Sequence[Transaction], budgets: Sequence[Budget]) -> float:
    """Share of (category, month) budgets whose spending exceeded the limit"""
    if not budgets:
        return 0.0

    spent: Dict[Tuple[str, date], float] = defaultdict(float)
    for txn in transactions:
        if txn.is_expense:
            spent[(txn.category_id, first_of_month(txn.date))] += txn.amount

    overruns = sum(
        1 for b in budgets
        if spent.get((b.category_id, first_of_month(b.month)), 0.0) > b.limit_amount
    )
    return overruns / len(budgets)


def calculate_expense_control(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
    parameters: HealthScoreParameters = DEFAULT_PARAMETERS,
) -> float:
    """
    Controle de gastos (0-30): expense/income ratio.

    Bands:
    - ratio <= healthy ratio (70%): full marks
    - healthy ratio .. 1.0: linear 30 -> 10
    - 1.0 .. overspend ceiling (150%): linear 10 -> 0
    - zero income: 0 (worst case, no division)

    Budget overruns shave off up to `budget_overrun_penalty` of the result.
    """
    income = total_income(transactions)
    if income <= 0:
        return 0.0

    ratio = total_expenses(transactions) / income
    healthy = parameters.healthy_spending_ratio
    ceiling = parameters.overspend_ceiling_ratio

    if ratio <= healthy:
        score = MAX_CONTROLE_GASTOS
    elif ratio < 1.0:
        score = 30.0 - 20.0 * (ratio - healthy) / (1.0 - healthy)
    elif ratio < ceiling:
        score = 10.0 - 10.0 * (ratio - 1.0) / (ceiling - 1.0)
    else:
        score = 0.0

    score *= 1.0 - parameters.budget_overrun_penalty * budget_overrun_share(transactions, budgets)
    return _clamp(score, 0.0, MAX_CONTROLE_GASTOS)


def calculate_savings(
    transactions: Sequence[Transaction],
    current_balance: float = 0.0,
    period_months: int = 3,
    parameters: HealthScoreParameters = DEFAULT_PARAMETERS,
) -> float:
    """
    Poupança e reservas (0-25): savings rate plus emergency reserve.

    - 20 points: savings rate (income - expenses) / income against the target (20%)
    - 5 points: days of reserve (balance / average daily spend) against 180 days
    """
    income = total_income(transactions)
    if income <= 0:
        return 0.0

    spent = total_expenses(transactions)
    savings_rate = (income - spent) / income
    target = parameters.savings_target_rate

    if savings_rate >= target:
        rate_points = 20.0
    elif savings_rate > 0:
        rate_points = 20.0 * savings_rate / target
    else:
        rate_points = 0.0

    reserve_points = 0.0
    if current_balance > 0:
        period_days = max(period_months, 1) * parameters.days_per_month
        daily_spend = spent / period_days
        if daily_spend <= 0:
            reserve_points = 5.0
        else:
            reserve_days = current_balance / daily_spend
            reserve_points = 5.0 * min(1.0, reserve_days / parameters.reserve_target_days)

    return _clamp(rate_points + reserve_points, 0.0, MAX_POUPANCA_RESERVAS)


def calculate_predictability(transactions: Sequence[Transaction]) -> float:
    """Previsibilidade (0-20): inverse coefficient of variation of monthly expenses"""
    monthly = monthly_aggregates(transactions)
    if len(monthly) < 2:
        return MAX_PREVISIBILIDADE / 2

    totals = [m.expenses for m in monthly]
    avg = mean(totals)
    if avg <= 0:
        return MAX_PREVISIBILIDADE

    coefficient_of_variation = population_stddev(totals) / avg
    return _clamp(MAX_PREVISIBILIDADE * (1.0 - min(1.0, coefficient_of_variation)), 0.0, MAX_PREVISIBILIDADE)


def credit_utilization(
    cards: Sequence[Card],
    transactions: Sequence[Transaction],
    period_months: int = 3,
) -> Optional[float]:
    """
    Average monthly credit-card spend divided by total credit limit.

    Returns None when there is no credit limit to compare against. Expenses tagged
    with a credit card id are used when present; otherwise every expense is
    treated as an estimate of card spend.
    """
    credit_cards = [c for c in cards if c.type == CREDIT]
    total_limit = sum(c.limit or 0.0 for c in credit_cards)
    if total_limit <= 0:
        return None

    credit_ids = {c.id for c in credit_cards if c.id}
    tagged = [t.amount for t in transactions if t.is_expense and t.card_id in credit_ids]
    card_spend = sum(tagged) if tagged else total_expenses(transactions)

    monthly_spend = card_spend / max(period_months, 1)
    return min(1.0, monthly_spend / total_limit)


def calculate_debt_score(
    cards: Sequence[Card],
    transactions: Sequence[Transaction],
    period_months: int = 3,
) -> float:
    """
    Dívidas (0-15): credit utilization bands.

    - no credit cards: 15
    - credit cards without limits: 10
    - utilization >= 90%: 0, >= 70%: 5, >= 50%: 10, else 15 - 10 * utilization
    """
    if not any(c.type == CREDIT for c in cards):
        return MAX_DIVIDAS

    utilization = credit_utilization(cards, transactions, period_months)
    if utilization is None:
        return 10.0

    if utilization >= 0.9:
        return 0.0
    elif utilization >= 0.7:
        return 5.0
    elif utilization >= 0.5:
        return 10.0
    return _clamp(MAX_DIVIDAS - utilization * 10.0, 0.0, MAX_DIVIDAS)


def concentration_index(transactions: Sequence[Transaction]) -> Optional[float]:
    """Herfindahl index of category expense shares; None without expenses"""
    by_category: Dict[str, float] = defaultdict(float)
    for txn in transactions:
        if txn.is_expense:
            by_category[txn.category_id] += txn.amount

    total = sum(by_category.values())
    if total <= 0:
        return None
    return sum((amount / total) ** 2 for amount in by_category.values())


def calculate_diversification(transactions: Sequence[Transaction]) -> float:
    """Diversificação (0-10): 10 * (1 - concentration index)"""
    hhi = concentration_index(transactions)
    if hhi is None:
        return MAX_DIVERSIFICACAO / 2
    return _clamp(MAX_DIVERSIFICACAO * (1.0 - hhi), 0.0, MAX_DIVERSIFICACAO)


def calculate_breakdown(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
    cards: Sequence[Card],
    current_balance: float = 0.0,
    period_months: int = 3,
    parameters: HealthScoreParameters = DEFAULT_PARAMETERS,
) -> HealthScoreBreakdown:
    """Compute the five sub-scores, each rounded to two decimals"""
    if not transactions:
        return NEUTRAL_BREAKDOWN

    return HealthScoreBreakdown(
        controle_gastos=round(calculate_expense_control(transactions, budgets, parameters), 2),
        poupanca_reservas=round(calculate_savings(transactions, current_balance, period_months, parameters), 2),
        previsibilidade=round(calculate_predictability(transactions), 2),
        dividas=round(calculate_debt_score(cards, transactions, period_months), 2),
        diversificacao=round(calculate_diversification(transactions), 2),
    )


def score_from_breakdown(breakdown: HealthScoreBreakdown) -> int:
    return int(_clamp(round(breakdown.total()), 0, 100))


def categorize_score(score: int) -> str:
    """
    Map score to a category.

    Bands: >= 80 excellent, >= 60 good, >= 40 fair, >= 20 poor, else critical.
    """
    if score >= 80:
        return "excellent"
    elif score >= 60:
        return "good"
    elif score >= 40:
        return "fair"
    elif score >= 20:
        return "poor"
    return "critical"


def determine_trend(score: int, previous_score: Optional[int], tolerance: float) -> str:
    if previous_score is None:
        return "stable"
    diff = score - previous_score
    if diff > tolerance:
        return "up"
    elif diff < -tolerance:
        return "down"
    return "stable"


def calculate_health_score(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
    cards: Sequence[Card],
    current_balance: float = 0.0,
    previous_transactions: Optional[List[Transaction]] = None,
    period_months: int = 3,
    parameters: Optional[HealthScoreParameters] = None,
    previous_budgets: Sequence[Budget] = (),
) -> HealthScoreResult:
    """
    Main entry point: score the current period and compare with the previous one.

    The previous period is scored against its own month budgets (budgets are
    matched by category and month) with the same cards and balance, so identical
    periods produce identical scores.
    """
    parameters = parameters or DEFAULT_PARAMETERS

    breakdown = calculate_breakdown(transactions, budgets, cards, current_balance, period_months, parameters)
    score = score_from_breakdown(breakdown)

    previous_score = None
    if previous_transactions:
        previous_breakdown = calculate_breakdown(
            previous_transactions, previous_budgets, cards, current_balance, period_months, parameters
        )
        previous_score = score_from_breakdown(previous_breakdown)

    return HealthScoreResult(
        score=score,
        breakdown=breakdown,
        trend=determine_trend(score, previous_score, parameters.trend_tolerance_points),
        category=categorize_score(score),
        previous_score=previous_score,
    )
