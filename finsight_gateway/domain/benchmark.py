"""Benchmark comparator - user category spending against market references"""

from typing import Dict, List, Optional, Sequence, Tuple

from finsight_gateway.domain.models import (
    BenchmarkSegment,
    BenchmarkSummary,
    CategoryBenchmark,
    CategoryTotal,
    MarketReference,
    MarketTable,
)
from finsight_gateway.domain.parameters import BenchmarkParameters

DEFAULT_PARAMETERS = BenchmarkParameters()

# Monthly per-capita spending references
MARKET_BENCHMARKS: MarketTable = {
    "food": MarketReference(average=600, median=500, p25=350, p75=750, p90=1000),
    "transport": MarketReference(average=450, median=400, p25=250, p75=600, p90=850),
    "housing": MarketReference(average=1200, median=1000, p25=700, p75=1500, p90=2200),
    "health": MarketReference(average=300, median=250, p25=150, p75=400, p90=600),
    "education": MarketReference(average=400, median=350, p25=200, p75=550, p90=800),
    "entertainment": MarketReference(average=350, median=300, p25=150, p75=450, p90=700),
    "clothing": MarketReference(average=250, median=200, p25=100, p75=350, p90=500),
    "services": MarketReference(average=280, median=250, p25=180, p75=350, p90=500),
}

CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("food", ("aliment", "comida", "restaurante", "supermercado", "food", "grocer", "restaurant", "dining")),
    ("transport", ("transporte", "combust", "uber", "táxi", "taxi", "transport", "fuel", "gas station")),
    ("housing", ("moradia", "aluguel", "condomínio", "iptu", "housing", "rent", "mortgage")),
    ("health", ("saúde", "saude", "médico", "medico", "farmácia", "farmacia", "health", "pharmacy", "doctor")),
    ("education", ("educa", "escola", "curso", "faculdade", "school", "course", "tuition")),
    ("entertainment", ("lazer", "entreten", "cinema", "shows", "entertain", "leisure", "streaming")),
    ("clothing", ("roupa", "vestu", "moda", "cloth", "apparel", "fashion")),
    ("services", ("serviço", "servico", "conta", "internet", "telefone", "service", "utilit", "phone", "bill")),
]

INCOME_RANGE_FACTORS: Dict[str, float] = {
    "low": 0.7,
    "middle": 1.0,
    "high": 1.5,
}


def map_category(category_name: Optional[str]) -> Optional[str]:
    """Map a free-form category name to a market reference key by keyword"""
    if not category_name:
        return None
    name = category_name.lower()
    for key, keywords in CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return key
    return None


def segment_factor(segment: Optional[BenchmarkSegment]) -> float:
    if segment is None or segment.income_range is None:
        return 1.0
    return INCOME_RANGE_FACTORS.get(segment.income_range.lower(), 1.0)


def calculate_percentile(amount: float, reference: MarketReference) -> float:
    """
    Piecewise-linear percentile of `amount` within the reference distribution.

    Knots: 0 -> 0, p25 -> 25, median -> 50, p75 -> 75, p90 -> 90, capped at 100
    once the excess over p90 reaches 2 * p90.
    """
    if amount <= reference.p25:
        return amount / reference.p25 * 25
    elif amount <= reference.median:
        return 25 + (amount - reference.p25) / (reference.median - reference.p25) * 25
    elif amount <= reference.p75:
        return 50 + (amount - reference.median) / (reference.p75 - reference.median) * 25
    elif amount <= reference.p90:
        return 75 + (amount - reference.p75) / (reference.p90 - reference.p75) * 15
    excess = amount - reference.p90
    return min(100.0, 90 + excess / (reference.p90 * 2) * 10)


def comparison_label(percentile: float) -> str:
    if percentile < 20:
        return "much_below"
    elif percentile < 40:
        return "below"
    elif percentile < 60:
        return "average"
    elif percentile < 80:
        return "above"
    return "much_above"


def category_score(percentile: float) -> float:
    """Inverse of the percentile: spending less than the market scores higher"""
    return max(0.0, min(100.0, 100.0 - percentile))


def _benchmark_category(
    expense: CategoryTotal,
    factor: float,
    segment_label: Optional[str],
    parameters: BenchmarkParameters,
) -> CategoryBenchmark:
    key = map_category(expense.category_name)
    total = expense.total

    if key is None:
        market_average = parameters.default_market_average * factor
        percentile = 60.0 if total > market_average else 40.0
        return CategoryBenchmark(
            category_id=expense.category_id,
            category_name=expense.category_name,
            user_amount=round(total, 2),
            market_average=round(market_average, 2),
            market_median=round(market_average, 2),
            percentile=int(percentile),
            category_score=round(category_score(percentile)),
            comparison="above" if total > market_average else "below",
            segment=segment_label,
        )

    reference = MARKET_BENCHMARKS[key].scaled(factor)
    percentile = calculate_percentile(total, reference)

    savings = None
    if total > reference.average:
        savings = round((total - reference.average) * parameters.savings_share_of_excess, 2)

    return CategoryBenchmark(
        category_id=expense.category_id,
        category_name=expense.category_name,
        user_amount=round(total, 2),
        market_average=round(reference.average, 2),
        market_median=round(reference.median, 2),
        percentile=round(percentile),
        category_score=round(category_score(percentile)),
        comparison=comparison_label(percentile),
        savings_opportunity=savings,
        segment=segment_label,
    )


def generate_benchmark(
    category_expenses: Sequence[CategoryTotal],
    segment: Optional[BenchmarkSegment] = None,
    parameters: Optional[BenchmarkParameters] = None,
) -> BenchmarkSummary:
    """
    Compare monthly category averages against market references.

    Overall score is the average of per-category scores weighted by each
    category's share of the user's expenses. No expenses yields the neutral
    score (50) and an empty breakdown.
    """
    parameters = parameters or DEFAULT_PARAMETERS
    spending = [e for e in category_expenses if e.total > 0]
    total_user = sum(e.total for e in spending)

    if total_user <= 0:
        return BenchmarkSummary(
            overall_score=parameters.neutral_score,
            category_benchmarks=[],
            total_user_expenses=0.0,
            total_market_average=0.0,
            message="Not enough expense data for benchmarking",
        )

    factor = segment_factor(segment)
    segment_label = segment.label() if segment else None
    benchmarks = [_benchmark_category(e, factor, segment_label, parameters) for e in spending]

    weighted = sum(b.category_score * e.total for b, e in zip(benchmarks, spending))
    overall_score = round(weighted / total_user)

    savings = sum(b.savings_opportunity or 0.0 for b in benchmarks)
    benchmarks.sort(key=lambda b: abs(b.user_amount - b.market_average), reverse=True)

    return BenchmarkSummary(
        overall_score=overall_score,
        category_benchmarks=benchmarks,
        total_user_expenses=round(total_user, 2),
        total_market_average=round(sum(b.market_average for b in benchmarks), 2),
        savings_opportunity=round(savings, 2) if savings > 0 else None,
    )
