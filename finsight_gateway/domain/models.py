"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


INCOME = "income"
EXPENSE = "expense"
CREDIT = "credit"
DEBIT = "debit"

SEVERITY_ORDER = {"critical": 0, "high": 1, "moderate": 2}
PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass(frozen=True)
class Transaction:
    """Normalized transaction snapshot; amount is never negative, sign lives in type"""

    id: str
    amount: float
    type: str  # "income" or "expense"
    date: date
    category_id: str
    category_name: Optional[str] = None
    description: str = ""
    card_id: Optional[str] = None

    @property
    def is_expense(self) -> bool:
        return self.type == EXPENSE

    @property
    def is_income(self) -> bool:
        return self.type == INCOME


@dataclass(frozen=True)
class Budget:
    """Spending limit for one category in one month"""

    category_id: str
    limit_amount: float
    month: date  # first day of the month


@dataclass(frozen=True)
class Card:
    """Payment card; only credit cards count towards utilization"""

    type: str  # "credit" or "debit"
    limit: Optional[float] = None
    id: Optional[str] = None


@dataclass(frozen=True)
class CategoryTotal:
    """Expense total for a category (period sum or monthly average)"""

    category_id: str
    total: float
    category_name: Optional[str] = None


@dataclass(frozen=True)
class MonthlyAggregate:
    """Income and expense totals for one calendar month"""

    month: date
    income: float
    expenses: float


@dataclass(frozen=True)
class HealthScoreBreakdown:
    """Sub-scores; maxima are 30, 25, 20, 15 and 10"""

    controle_gastos: float
    poupanca_reservas: float
    previsibilidade: float
    dividas: float
    diversificacao: float

    def total(self) -> float:
        return (
            self.controle_gastos
            + self.poupanca_reservas
            + self.previsibilidade
            + self.dividas
            + self.diversificacao
        )


@dataclass(frozen=True)
class HealthScoreResult:
    """Output of the health score engine"""

    score: int
    breakdown: HealthScoreBreakdown
    trend: str  # "up" | "down" | "stable"
    category: str  # "excellent" | "good" | "fair" | "poor" | "critical"
    previous_score: Optional[int] = None


@dataclass(frozen=True)
class Anomaly:
    """Transaction or category pattern inconsistent with recent history"""

    id: str
    severity: str  # "critical" | "high" | "moderate"
    type: str  # "expense_spike" | "budget_overflow" | "unusual_category" | "income_drop"
    title: str
    description: str
    amount: float
    date: date
    deviation: float  # percent above the reference value
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    transaction_id: Optional[str] = None
    suggested_action: Optional[str] = None


@dataclass(frozen=True)
class ConfidenceInterval:
    min: float
    max: float


@dataclass(frozen=True)
class ForecastPeriod:
    """Projection for a single future month"""

    month: str  # YYYY-MM
    predicted_expenses: float
    predicted_income: float
    confidence: str  # "high" | "medium" | "low"
    confidence_interval: ConfidenceInterval


@dataclass(frozen=True)
class ForecastMetadata:
    historical_periods: int
    forecast_periods: int
    avg_monthly_expenses: float
    avg_monthly_income: float
    trend: str  # "increasing" | "decreasing" | "stable"
    slope: float


@dataclass(frozen=True)
class ForecastResult:
    """Forecast list; empty with a message when history is too short"""

    forecast: List[ForecastPeriod]
    metadata: Optional[ForecastMetadata] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class RecommendationImpact:
    time_to_implement: str  # "immediate" | "short" | "medium" | "long"
    effort: str  # "low" | "medium" | "high"
    potential_savings: Optional[float] = None


@dataclass(frozen=True)
class Recommendation:
    """Actionable suggestion emitted by a recommendation rule"""

    id: str
    rule_id: str
    priority: str  # "high" | "medium" | "low"
    category: str  # "savings" | "spending" | "budget" | "debt" | "investment"
    title: str
    description: str
    impact: RecommendationImpact
    action_steps: List[str] = field(default_factory=list)
    category_id: Optional[str] = None
    estimated_benefit: Optional[str] = None


@dataclass(frozen=True)
class BenchmarkSegment:
    """Population segment used to adjust market references"""

    age_range: Optional[str] = None
    region: Optional[str] = None
    income_range: Optional[str] = None  # "low" | "middle" | "high"

    def label(self) -> Optional[str]:
        parts = [p for p in (self.age_range, self.region, self.income_range) if p]
        return " ".join(parts) or None


@dataclass(frozen=True)
class CategoryBenchmark:
    category_id: str
    user_amount: float
    market_average: float
    market_median: float
    percentile: int
    category_score: int
    comparison: str  # "much_below" | "below" | "average" | "above" | "much_above"
    category_name: Optional[str] = None
    savings_opportunity: Optional[float] = None
    segment: Optional[str] = None


@dataclass(frozen=True)
class BenchmarkSummary:
    overall_score: int
    category_benchmarks: List[CategoryBenchmark]
    total_user_expenses: float
    total_market_average: float
    savings_opportunity: Optional[float] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class MarketReference:
    """Reference distribution of monthly spending for a market category"""

    average: float
    median: float
    p25: float
    p75: float
    p90: float

    def scaled(self, factor: float) -> "MarketReference":
        return MarketReference(
            average=self.average * factor,
            median=self.median * factor,
            p25=self.p25 * factor,
            p75=self.p75 * factor,
            p90=self.p90 * factor,
        )


MarketTable = Dict[str, MarketReference]
