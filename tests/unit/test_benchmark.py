"""Unit tests for the benchmark comparator"""

import pytest
from finsight_gateway.domain.models import BenchmarkSegment, CategoryTotal
from finsight_gateway.domain.benchmark import (
    MARKET_BENCHMARKS,
    calculate_percentile,
    category_score,
    comparison_label,
    generate_benchmark,
    map_category,
    segment_factor,
)


def spend(name, total):
    return CategoryTotal(category_id=name.lower(), total=total, category_name=name)


def test_no_expenses_is_neutral():
    """Test empty input yields the neutral score and no breakdown"""
    summary = generate_benchmark([])

    assert summary.overall_score == 50
    assert summary.category_benchmarks == []
    assert summary.message is not None


def test_zero_totals_are_ignored():
    summary = generate_benchmark([spend("Food", 0)])

    assert summary.overall_score == 50
    assert summary.category_benchmarks == []


def test_median_spender_is_average():
    """Test spending exactly the market median"""
    summary = generate_benchmark([spend("Food", 500)])

    food = summary.category_benchmarks[0]
    assert food.percentile == 50
    assert food.category_score == 50
    assert food.comparison == "average"
    assert food.market_average == 600
    assert food.market_median == 500
    assert food.savings_opportunity is None
    assert summary.overall_score == 50


def test_percentile_knots():
    food = MARKET_BENCHMARKS["food"]

    assert calculate_percentile(0, food) == 0
    assert calculate_percentile(350, food) == 25
    assert calculate_percentile(750, food) == 75
    assert calculate_percentile(1000, food) == 90
    assert calculate_percentile(100_000, food) == 100


def test_more_spending_never_scores_higher():
    """Test category score is non-increasing in the amount spent"""
    food = MARKET_BENCHMARKS["food"]
    amounts = [0, 100, 350, 420, 500, 600, 750, 900, 1000, 1500, 3000, 10_000]

    percentiles = [calculate_percentile(a, food) for a in amounts]
    scores = [category_score(p) for p in percentiles]

    assert percentiles == sorted(percentiles)
    assert scores == sorted(scores, reverse=True)
    assert all(0 <= s <= 100 for s in scores)


def test_overall_score_weighted_by_spending():
    """Test the overall score weights categories by their share of expenses"""
    # Food at p25 -> score 75, Housing at the median -> score 50
    summary = generate_benchmark([spend("Food", 350), spend("Housing", 1000)])

    # (75 * 350 + 50 * 1000) / 1350 = 56.5
    assert summary.overall_score == 56
    assert summary.total_user_expenses == 1350
    assert summary.total_market_average == 1800


def test_unmapped_category():
    """Test a category without a market reference uses the default average"""
    summary = generate_benchmark([spend("Pets", 400)])

    pets = summary.category_benchmarks[0]
    assert pets.market_average == 300
    assert pets.percentile == 60
    assert pets.category_score == 40
    assert pets.comparison == "above"


def test_savings_opportunity():
    """Test 30% of the amount above the market average is a savings opportunity"""
    summary = generate_benchmark([spend("Supermercado", 900)])

    assert summary.category_benchmarks[0].savings_opportunity == 90
    assert summary.savings_opportunity == 90


def test_high_income_segment_scales_market():
    segment = BenchmarkSegment(age_range="25-34", region="SP", income_range="high")

    summary = generate_benchmark([spend("Food", 500)], segment=segment)

    food = summary.category_benchmarks[0]
    assert food.market_average == 900
    assert food.segment == "25-34 SP high"
    # 500 against a scaled p25 of 525
    assert food.comparison in ("much_below", "below")


def test_segment_factor():
    assert segment_factor(None) == 1.0
    assert segment_factor(BenchmarkSegment(region="RJ")) == 1.0
    assert segment_factor(BenchmarkSegment(income_range="low")) == 0.7
    assert segment_factor(BenchmarkSegment(income_range="HIGH")) == 1.5


def test_rows_sorted_by_absolute_deviation():
    summary = generate_benchmark([spend("Food", 620), spend("Housing", 3000), spend("Pets", 100)])

    assert [b.category_id for b in summary.category_benchmarks] == ["housing", "pets", "food"]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Alimentação", "food"),
        ("Supermercado", "food"),
        ("Groceries", "food"),
        ("Aluguel", "housing"),
        ("Uber", "transport"),
        ("Farmácia", "health"),
        ("Internet", "services"),
        ("Pets", None),
        (None, None),
    ],
)
def test_map_category(name, expected):
    assert map_category(name) == expected


@pytest.mark.parametrize(
    "percentile,label",
    [(0, "much_below"), (19.9, "much_below"), (20, "below"), (45, "average"), (60, "above"), (80, "much_above")],
)
def test_comparison_label(percentile, label):
    assert comparison_label(percentile) == label
