"""Unit tests for the recommendation engine"""

import pytest
from datetime import date
from finsight_gateway.domain.models import (
    Budget,
    CategoryTotal,
    HealthScoreBreakdown,
    HealthScoreResult,
    Recommendation,
    RecommendationImpact,
    Transaction,
)
from finsight_gateway.domain.recommendations import (
    RecommendationRule,
    RuleMatch,
    RuleText,
    generate_recommendations,
    priority_for,
    sort_recommendations,
)
from finsight_gateway.domain.parameters import RecommendationParameters

HEALTHY = HealthScoreBreakdown(
    controle_gastos=30, poupanca_reservas=25, previsibilidade=20, dividas=15, diversificacao=10
)


def health(breakdown=HEALTHY, score=None):
    total = round(breakdown.total()) if score is None else score
    return HealthScoreResult(score=total, breakdown=breakdown, trend="stable", category="excellent")


def recommend(
    income=5000.0,
    expenses=3000.0,
    top_categories=None,
    budgets=None,
    breakdown=HEALTHY,
    score=None,
    transactions=None,
    **kwargs,
):
    if top_categories is None:
        top_categories = [
            CategoryTotal(category_id="rent", total=expenses * 0.25, category_name="Rent"),
            CategoryTotal(category_id="food", total=expenses * 0.2, category_name="Food"),
        ]
    if budgets is None:
        budgets = [Budget(category_id=c.category_id, limit_amount=5000, month=date(2025, 1, 1)) for c in top_categories]
    return generate_recommendations(
        transactions=transactions or [],
        budgets=budgets,
        health_score=health(breakdown, score),
        total_income=income,
        total_expenses=expenses,
        top_categories=top_categories,
        **kwargs,
    )


def by_rule(recommendations):
    return {r.rule_id: r for r in recommendations}


def test_priority_for_deviation():
    params = RecommendationParameters()

    assert priority_for(0.6, params) == "high"
    assert priority_for(0.5, params) == "high"
    assert priority_for(0.3, params) == "medium"
    assert priority_for(0.1, params) == "low"
    # floor never lowers a higher priority
    assert priority_for(0.1, params, min_priority="medium") == "medium"
    assert priority_for(0.9, params, min_priority="medium") == "high"


def test_healthy_user_gets_invest_surplus_only():
    """Test a healthy profile with a 40% savings rate"""
    recommendations = recommend()

    assert [r.rule_id for r in recommendations] == ["invest-surplus"]
    invest = recommendations[0]
    assert invest.priority == "low"
    assert invest.category == "investment"
    assert invest.id == "rec-invest-surplus"


def test_deficit_recommendation():
    """Test spending above income triggers the deficit rule"""
    recommendations = recommend(income=3000, expenses=4000)

    deficit = by_rule(recommendations)["stop-deficit"]
    # deficit 1000 / income 3000 -> medium
    assert deficit.priority == "medium"
    assert deficit.impact.potential_savings == 1000
    assert deficit.impact.time_to_implement == "immediate"
    assert "invest-surplus" not in by_rule(recommendations)


def test_large_deficit_is_high_priority():
    recommendations = recommend(income=2000, expenses=4000)

    assert by_rule(recommendations)["stop-deficit"].priority == "high"


def test_concentrated_category():
    """Test a category above 30% of spending gets a per-category recommendation"""
    top = [
        CategoryTotal(category_id="rent", total=3000, category_name="Rent"),
        CategoryTotal(category_id="food", total=1000, category_name="Food"),
    ]

    recommendations = recommend(expenses=4000, top_categories=top)

    diversify = [r for r in recommendations if r.rule_id == "diversify-category"]
    assert len(diversify) == 1
    rec = diversify[0]
    assert rec.id == "rec-diversify-category-rent"
    assert rec.category_id == "rent"
    # share 0.75 -> (0.75 - 0.3) / 0.3 = 1.5
    assert rec.priority == "high"
    assert rec.impact.potential_savings == 450


def test_missing_budgets():
    """Test a user without budgets is told to create them"""
    recommendations = recommend(budgets=[])

    create = by_rule(recommendations)["create-budgets"]
    assert create.category == "budget"
    assert "Rent" in create.action_steps[0]
    assert "Food" in create.action_steps[0]


def test_low_subscores_trigger_their_rules():
    breakdown = HealthScoreBreakdown(
        controle_gastos=10, poupanca_reservas=5, previsibilidade=6, dividas=0, diversificacao=5
    )

    recommendations = recommend(income=5000, expenses=4900, breakdown=breakdown)

    rules = by_rule(recommendations)
    assert rules["control-spending"].priority == "high"
    assert rules["increase-savings"].priority == "high"
    assert rules["improve-predictability"].priority == "high"
    assert rules["reduce-debt"].priority == "high"
    # target spend is 80% of income
    assert rules["control-spending"].impact.potential_savings == 900


def test_rising_spending():
    """Test a steady upward monthly expense trend"""
    transactions = [
        Transaction(id=str(m), amount=amount, type="expense", date=date(2025, m, 5), category_id="food")
        for m, amount in ((1, 1000), (2, 1500), (3, 2000))
    ]

    recommendations = recommend(transactions=transactions)

    rising = by_rule(recommendations)["rising-spending"]
    # slope 500 over a 1500 mean
    assert rising.impact.potential_savings == 500
    assert rising.priority == "high"


def test_sorted_by_priority_then_savings():
    """Test output ordering"""
    breakdown = HealthScoreBreakdown(
        controle_gastos=10, poupanca_reservas=5, previsibilidade=20, dividas=15, diversificacao=5
    )

    recommendations = recommend(income=3000, expenses=4000, breakdown=breakdown, budgets=[])

    order = [(r.priority, r.impact.potential_savings or 0) for r in recommendations]
    ranks = {"high": 0, "medium": 1, "low": 2}
    assert order == sorted(order, key=lambda item: (ranks[item[0]], -item[1]))


def test_sort_recommendations():
    def rec(id, priority, savings):
        return Recommendation(
            id=id,
            rule_id=id,
            priority=priority,
            category="spending",
            title=id,
            description=id,
            impact=RecommendationImpact(time_to_implement="short", effort="low", potential_savings=savings),
        )

    result = sort_recommendations([rec("a", "low", 500), rec("b", "high", 10), rec("c", "high", 100), rec("d", "medium", None)])

    assert [r.id for r in result] == ["c", "b", "d", "a"]


def test_one_recommendation_per_rule_and_category():
    """Test duplicate matches from a rule collapse into one recommendation"""
    rule = RecommendationRule(
        rule_id="double",
        category="spending",
        time_to_implement="short",
        effort="low",
        trigger=lambda ctx: [RuleMatch(deviation=0.6, category_id="x"), RuleMatch(deviation=0.1, category_id="x")],
        emit=lambda ctx, match: RuleText(title="t", description="d", action_steps=["s"]),
    )

    recommendations = recommend(rules=(rule,))

    assert len(recommendations) == 1
    assert recommendations[0].id == "rec-double-x"
    assert recommendations[0].priority == "high"


def test_custom_thresholds():
    """Test thresholds come from the parameters"""
    parameters = RecommendationParameters(concentration_share=0.8)
    top = [CategoryTotal(category_id="rent", total=3000, category_name="Rent")]

    recommendations = recommend(expenses=4000, top_categories=top, parameters=parameters)

    assert "diversify-category" not in by_rule(recommendations)


def test_custom_savings_shares():
    """Test suggested savings amounts come from the parameters"""
    parameters = RecommendationParameters(
        savings_income_share=0.1,
        budgeting_savings_share=0.2,
        diversification_savings_share=0.5,
    )
    breakdown = HealthScoreBreakdown(
        controle_gastos=30, poupanca_reservas=5, previsibilidade=20, dividas=15, diversificacao=10
    )
    top = [CategoryTotal(category_id="rent", total=3000, category_name="Rent")]

    recommendations = recommend(
        income=5000,
        expenses=4000,
        top_categories=top,
        budgets=[],
        breakdown=breakdown,
        parameters=parameters,
    )

    rules = by_rule(recommendations)
    assert rules["increase-savings"].impact.potential_savings == 500
    assert rules["create-budgets"].impact.potential_savings == 600
    assert rules["diversify-category"].impact.potential_savings == 1500


@pytest.mark.parametrize("score", [0, 59])
def test_no_invest_surplus_for_low_score(score):
    recommendations = recommend(score=score)

    assert "invest-surplus" not in by_rule(recommendations)
