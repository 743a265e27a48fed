"""Recommendation engine - a table of independent rules evaluated uniformly"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from finsight_gateway.domain.aggregates import linear_trend, mean, monthly_aggregates
from finsight_gateway.domain.models import (
    PRIORITY_ORDER,
    Budget,
    CategoryTotal,
    HealthScoreResult,
    Recommendation,
    RecommendationImpact,
    Transaction,
)
from finsight_gateway.domain.parameters import RecommendationParameters

DEFAULT_PARAMETERS = RecommendationParameters()


@dataclass(frozen=True)
class RecommendationContext:
    """Signals shared by every rule"""

    transactions: Sequence[Transaction]
    budgets: Sequence[Budget]
    health_score: HealthScoreResult
    total_income: float
    total_expenses: float
    top_categories: Sequence[CategoryTotal]
    parameters: RecommendationParameters

    @property
    def savings_rate(self) -> float:
        if self.total_income <= 0:
            return 0.0
        return (self.total_income - self.total_expenses) / self.total_income

    @property
    def budgeted_categories(self) -> Set[str]:
        return {b.category_id for b in self.budgets}

    def monthly_expense_trend(self) -> Optional[float]:
        """Monthly expense slope relative to the monthly mean; None below two months"""
        totals = [m.expenses for m in monthly_aggregates(self.transactions)]
        avg = mean(totals)
        if len(totals) < 2 or avg <= 0:
            return None
        slope, _ = linear_trend(totals)
        return slope / avg


@dataclass(frozen=True)
class RuleMatch:
    """One firing of a rule; deviation is the relative distance from the healthy threshold"""

    deviation: float
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    potential_savings: Optional[float] = None
    values: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class RuleText:
    title: str
    description: str
    action_steps: List[str]
    estimated_benefit: Optional[str] = None


@dataclass(frozen=True)
class RecommendationRule:
    """Static metadata plus a trigger and an emitter"""

    rule_id: str
    category: str
    time_to_implement: str
    effort: str
    trigger: Callable[[RecommendationContext], List[RuleMatch]]
    emit: Callable[[RecommendationContext, RuleMatch], RuleText]
    min_priority: str = "low"


def priority_for(deviation: float, parameters: RecommendationParameters, min_priority: str = "low") -> str:
    """Larger deviation from the healthy threshold -> higher priority"""
    if deviation >= parameters.high_deviation:
        priority = "high"
    elif deviation >= parameters.medium_deviation:
        priority = "medium"
    else:
        priority = "low"
    return min(priority, min_priority, key=lambda p: PRIORITY_ORDER[p])


def _below_threshold(value: float, threshold: float) -> float:
    return (threshold - value) / threshold if threshold > 0 else 0.0


# Triggers

def _control_spending(ctx: RecommendationContext) -> List[RuleMatch]:
    value = ctx.health_score.breakdown.controle_gastos
    threshold = ctx.parameters.controle_gastos_threshold
    if value >= threshold:
        return []
    target_spend = (1 - ctx.parameters.savings_target_rate) * ctx.total_income
    excess = ctx.total_expenses - target_spend
    return [
        RuleMatch(
            deviation=_below_threshold(value, threshold),
            potential_savings=round(excess, 2) if excess > 0 else None,
        )
    ]


def _increase_savings(ctx: RecommendationContext) -> List[RuleMatch]:
    value = ctx.health_score.breakdown.poupanca_reservas
    threshold = ctx.parameters.poupanca_threshold
    if value >= threshold:
        return []
    savings = ctx.total_income * ctx.parameters.savings_income_share
    return [
        RuleMatch(
            deviation=_below_threshold(value, threshold),
            potential_savings=round(savings, 2) if savings > 0 else None,
        )
    ]


def _stop_deficit(ctx: RecommendationContext) -> List[RuleMatch]:
    deficit = ctx.total_expenses - ctx.total_income
    if deficit <= 0:
        return []
    deviation = deficit / ctx.total_income if ctx.total_income > 0 else 1.0
    return [RuleMatch(deviation=deviation, potential_savings=round(deficit, 2), values={"deficit": deficit})]


def _improve_predictability(ctx: RecommendationContext) -> List[RuleMatch]:
    value = ctx.health_score.breakdown.previsibilidade
    threshold = ctx.parameters.previsibilidade_threshold
    if value >= threshold:
        return []
    return [RuleMatch(deviation=_below_threshold(value, threshold))]


def _create_budgets(ctx: RecommendationContext) -> List[RuleMatch]:
    budgeted = ctx.budgeted_categories
    unbudgeted = [
        c for c in ctx.top_categories
        if c.category_id not in budgeted and c.total > ctx.parameters.unbudgeted_minimum
    ]
    if not unbudgeted and not ctx.budgets:
        unbudgeted = [c for c in ctx.top_categories if c.total > 0]
    if not unbudgeted:
        return []

    total_unbudgeted = sum(c.total for c in unbudgeted)
    share = total_unbudgeted / ctx.total_expenses if ctx.total_expenses > 0 else 0.0
    return [
        RuleMatch(
            deviation=share,
            potential_savings=round(total_unbudgeted * ctx.parameters.budgeting_savings_share, 2),
            values={"count": len(unbudgeted)},
            category_name=", ".join(c.category_name or c.category_id for c in unbudgeted),
        )
    ]


def _reduce_debt(ctx: RecommendationContext) -> List[RuleMatch]:
    value = ctx.health_score.breakdown.dividas
    threshold = ctx.parameters.dividas_threshold
    if value >= threshold:
        return []
    return [RuleMatch(deviation=_below_threshold(value, threshold))]


def _diversify_category(ctx: RecommendationContext) -> List[RuleMatch]:
    if ctx.total_expenses <= 0:
        return []
    limit = ctx.parameters.concentration_share
    matches = []
    for cat in ctx.top_categories:
        share = cat.total / ctx.total_expenses
        if share <= limit:
            continue
        matches.append(
            RuleMatch(
                deviation=(share - limit) / limit,
                category_id=cat.category_id,
                category_name=cat.category_name,
                potential_savings=round(cat.total * ctx.parameters.diversification_savings_share, 2),
                values={"share": share},
            )
        )
    return matches


def _rising_spending(ctx: RecommendationContext) -> List[RuleMatch]:
    trend = ctx.monthly_expense_trend()
    limit = ctx.parameters.rising_trend
    if trend is None or trend <= limit:
        return []
    monthly = [m.expenses for m in monthly_aggregates(ctx.transactions)]
    slope, _ = linear_trend(monthly)
    return [
        RuleMatch(
            deviation=(trend - limit) / limit,
            potential_savings=round(slope, 2),
            values={"trend": trend},
        )
    ]


def _invest_surplus(ctx: RecommendationContext) -> List[RuleMatch]:
    if ctx.savings_rate < ctx.parameters.savings_target_rate:
        return []
    if ctx.health_score.score < ctx.parameters.invest_min_score:
        return []
    surplus = ctx.total_income - ctx.total_expenses
    return [RuleMatch(deviation=0.0, values={"surplus": surplus})]


# Emitters

def _control_spending_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    return RuleText(
        title="Improve spending control",
        description="Your expenses take a larger share of income than is healthy. Budgets help rein them in.",
        action_steps=[
            "Create monthly budgets for your main categories",
            "Set alerts when you approach a limit",
            "Review your expenses every week",
        ],
        estimated_benefit=(
            f"Bring spending down by {match.potential_savings:.2f}" if match.potential_savings else None
        ),
    )


def _increase_savings_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    return RuleText(
        title="Increase your savings",
        description="You save less than the recommended 20% of income.",
        action_steps=[
            "Cut non-essential expenses by 15-20%",
            "Automate transfers to a savings account",
            "Build an emergency reserve of six months of expenses",
        ],
        estimated_benefit=(
            f"Save {match.potential_savings:.2f} over the period" if match.potential_savings else None
        ),
    )


def _stop_deficit_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    deficit = match.values["deficit"]
    return RuleText(
        title="You are spending more than you earn",
        description=f"Your deficit is {deficit:.2f}. This is not sustainable in the long run.",
        action_steps=[
            "Identify your three largest non-essential expenses",
            "Reduce or eliminate them until the deficit closes",
            "Consider additional sources of income",
        ],
        estimated_benefit=f"Eliminate a deficit of {deficit:.2f}",
    )


def _improve_predictability_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    return RuleText(
        title="Make your spending more predictable",
        description="Highly variable monthly spending makes planning harder.",
        action_steps=[
            "Identify and categorize all recurring expenses",
            "Register recurring transactions",
            "Set clear limits for variable expenses",
        ],
        estimated_benefit="Better planning and fewer surprises",
    )


def _create_budgets_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    count = int(match.values["count"])
    return RuleText(
        title="Create budgets for your main categories",
        description=f"{count} important category(ies) have no budget defined.",
        action_steps=[
            f"Create budgets for: {match.category_name}",
            "Set alerts at 80% of each limit",
            "Review monthly and adjust as needed",
        ],
        estimated_benefit=f"Potential savings of {match.potential_savings:.2f}",
    )


def _reduce_debt_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    return RuleText(
        title="Reduce credit card utilization",
        description="High credit utilization can lead to debt problems.",
        action_steps=[
            "Stop using credit cards until utilization is below 50%",
            "Pay off the highest-interest balances first",
            "Consider consolidating debts",
        ],
        estimated_benefit="Lower interest costs and a better credit profile",
    )


def _diversify_category_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    name = match.category_name or "this category"
    return RuleText(
        title=f"Rebalance your spending - {match.category_name or 'Category'}",
        description=(
            f"This category represents {match.values['share'] * 100:.0f}% of all your expenses."
        ),
        action_steps=[
            f"Review your expenses in {name}",
            "Look for cheaper alternatives",
            "Reduce gradually by 10-15% over three months",
        ],
        estimated_benefit=f"Potential savings of {match.potential_savings:.2f}",
    )


def _rising_spending_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    return RuleText(
        title="Your spending is trending up",
        description=(
            f"Monthly expenses are growing about {match.values['trend'] * 100:.0f}% of the average each month."
        ),
        action_steps=[
            "Compare this month's expenses with the previous ones",
            "Find the categories driving the increase",
            "Set a spending cap for next month",
        ],
        estimated_benefit=(
            f"Avoid roughly {match.potential_savings:.2f} of extra spending per month"
            if match.potential_savings else None
        ),
    )


def _invest_surplus_text(ctx: RecommendationContext, match: RuleMatch) -> RuleText:
    return RuleText(
        title="Put your surplus to work",
        description=f"You kept {match.values['surplus']:.2f} this period. Consider investing part of it.",
        action_steps=[
            "Confirm your emergency reserve covers six months of expenses",
            "Define goals and horizons for the surplus",
            "Choose investments that match your risk profile",
        ],
        estimated_benefit="Long-term growth of your savings",
    )


RULES: Tuple[RecommendationRule, ...] = (
    RecommendationRule("control-spending", "spending", "short", "low", _control_spending, _control_spending_text),
    RecommendationRule("increase-savings", "savings", "medium", "medium", _increase_savings, _increase_savings_text),
    RecommendationRule(
        "stop-deficit", "spending", "immediate", "high", _stop_deficit, _stop_deficit_text, min_priority="medium"
    ),
    RecommendationRule(
        "improve-predictability", "budget", "medium", "medium", _improve_predictability, _improve_predictability_text
    ),
    RecommendationRule("create-budgets", "budget", "short", "low", _create_budgets, _create_budgets_text),
    RecommendationRule("reduce-debt", "debt", "medium", "medium", _reduce_debt, _reduce_debt_text),
    RecommendationRule("diversify-category", "spending", "long", "high", _diversify_category, _diversify_category_text),
    RecommendationRule("rising-spending", "spending", "short", "medium", _rising_spending, _rising_spending_text),
    RecommendationRule("invest-surplus", "investment", "long", "medium", _invest_surplus, _invest_surplus_text),
)


def build_recommendation(rule: RecommendationRule, ctx: RecommendationContext, match: RuleMatch) -> Recommendation:
    text = rule.emit(ctx, match)
    rec_id = f"rec-{rule.rule_id}" if match.category_id is None else f"rec-{rule.rule_id}-{match.category_id}"
    return Recommendation(
        id=rec_id,
        rule_id=rule.rule_id,
        priority=priority_for(match.deviation, ctx.parameters, rule.min_priority),
        category=rule.category,
        title=text.title,
        description=text.description,
        impact=RecommendationImpact(
            time_to_implement=rule.time_to_implement,
            effort=rule.effort,
            potential_savings=match.potential_savings,
        ),
        action_steps=text.action_steps,
        category_id=match.category_id,
        estimated_benefit=text.estimated_benefit,
    )


def sort_recommendations(recommendations: Sequence[Recommendation]) -> List[Recommendation]:
    """Priority (high, medium, low), then potential savings descending"""
    return sorted(
        recommendations,
        key=lambda r: (PRIORITY_ORDER[r.priority], -(r.impact.potential_savings or 0.0)),
    )


def generate_recommendations(
    transactions: Sequence[Transaction],
    budgets: Sequence[Budget],
    health_score: HealthScoreResult,
    total_income: float,
    total_expenses: float,
    top_categories: Sequence[CategoryTotal],
    parameters: Optional[RecommendationParameters] = None,
    rules: Sequence[RecommendationRule] = RULES,
) -> List[Recommendation]:
    """
    Main entry point: evaluate every rule and return the sorted union.

    At most one recommendation is kept per (rule id, category id). The caller
    truncates the list to the number it wants to show.
    """
    ctx = RecommendationContext(
        transactions=transactions,
        budgets=budgets,
        health_score=health_score,
        total_income=total_income,
        total_expenses=total_expenses,
        top_categories=top_categories,
        parameters=parameters or DEFAULT_PARAMETERS,
    )

    seen: Set[Tuple[str, Optional[str]]] = set()
    recommendations = []
    for rule in rules:
        for match in rule.trigger(ctx):
            key = (rule.rule_id, match.category_id)
            if key in seen:
                continue
            seen.add(key)
            recommendations.append(build_recommendation(rule, ctx, match))

    return sort_recommendations(recommendations)
