"""Pydantic schemas for API responses.

Wire names follow the published payloads (camelCase for computed fields,
snake_case for record identifiers); Python attribute names stay snake_case.
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from finsight_gateway.domain.models import (
    Anomaly,
    BenchmarkSummary,
    CategoryBenchmark,
    ForecastPeriod,
    ForecastResult,
    HealthScoreResult,
    Recommendation,
)


class WireModel(BaseModel):
    """Built from attribute names, emitted under the wire aliases"""

    model_config = ConfigDict(populate_by_name=True)


class BreakdownSchema(WireModel):
    """Health score sub-scores"""

    controle_gastos: float = Field(..., ge=0, le=30, alias="controleGastos")
    poupanca_reservas: float = Field(..., ge=0, le=25, alias="poupancaReservas")
    previsibilidade: float = Field(..., ge=0, le=20)
    dividas: float = Field(..., ge=0, le=15)
    diversificacao: float = Field(..., ge=0, le=10)


class HealthScoreResponse(WireModel):
    """Response for GET /v1/insights/health-score"""

    score: int = Field(..., ge=0, le=100)
    breakdown: BreakdownSchema
    trend: str
    category: str
    previous_score: Optional[int] = Field(None, alias="previousScore")

    @classmethod
    def from_domain(cls, result: HealthScoreResult) -> "HealthScoreResponse":
        b = result.breakdown
        return cls(
            score=result.score,
            breakdown=BreakdownSchema(
                controle_gastos=b.controle_gastos,
                poupanca_reservas=b.poupanca_reservas,
                previsibilidade=b.previsibilidade,
                dividas=b.dividas,
                diversificacao=b.diversificacao,
            ),
            trend=result.trend,
            category=result.category,
            previous_score=result.previous_score,
        )


class AnomalySchema(WireModel):
    """Single detected anomaly"""

    id: str
    severity: str
    type: str
    title: str
    description: str
    amount: float
    date: datetime.date
    deviation: float
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    transaction_id: Optional[str] = None
    suggested_action: Optional[str] = Field(None, alias="suggestedAction")

    @classmethod
    def from_domain(cls, anomaly: Anomaly) -> "AnomalySchema":
        return cls(
            id=anomaly.id,
            severity=anomaly.severity,
            type=anomaly.type,
            title=anomaly.title,
            description=anomaly.description,
            amount=anomaly.amount,
            date=anomaly.date,
            deviation=anomaly.deviation,
            category_id=anomaly.category_id,
            category_name=anomaly.category_name,
            transaction_id=anomaly.transaction_id,
            suggested_action=anomaly.suggested_action,
        )


class AnomaliesResponse(WireModel):
    """Response for GET /v1/insights/anomalies"""

    anomalies: List[AnomalySchema]
    count: int


class ConfidenceIntervalSchema(WireModel):
    min: float = Field(..., ge=0)
    max: float


class ForecastPeriodSchema(WireModel):
    """Projection for one future month"""

    month: str
    predicted_expenses: float = Field(..., ge=0, alias="predictedExpenses")
    predicted_income: float = Field(..., ge=0, alias="predictedIncome")
    confidence: str
    confidence_interval: ConfidenceIntervalSchema = Field(..., alias="confidenceInterval")

    @classmethod
    def from_domain(cls, period: ForecastPeriod) -> "ForecastPeriodSchema":
        return cls(
            month=period.month,
            predicted_expenses=period.predicted_expenses,
            predicted_income=period.predicted_income,
            confidence=period.confidence,
            confidence_interval=ConfidenceIntervalSchema(
                min=period.confidence_interval.min,
                max=period.confidence_interval.max,
            ),
        )


class ForecastMetadataSchema(WireModel):
    historical_periods: int = Field(..., alias="historicalPeriods")
    forecast_periods: int = Field(..., alias="forecastPeriods")
    avg_monthly_expenses: float = Field(..., alias="avgMonthlyExpenses")
    avg_monthly_income: float = Field(..., alias="avgMonthlyIncome")
    trend: str
    slope: float


class ForecastResponse(WireModel):
    """Response for GET /v1/insights/forecast"""

    forecast: List[ForecastPeriodSchema]
    metadata: Optional[ForecastMetadataSchema] = None
    message: Optional[str] = None

    @classmethod
    def from_domain(cls, result: ForecastResult) -> "ForecastResponse":
        metadata = None
        if result.metadata is not None:
            m = result.metadata
            metadata = ForecastMetadataSchema(
                historical_periods=m.historical_periods,
                forecast_periods=m.forecast_periods,
                avg_monthly_expenses=m.avg_monthly_expenses,
                avg_monthly_income=m.avg_monthly_income,
                trend=m.trend,
                slope=m.slope,
            )
        return cls(
            forecast=[ForecastPeriodSchema.from_domain(p) for p in result.forecast],
            metadata=metadata,
            message=result.message,
        )


class ImpactSchema(WireModel):
    potential_savings: Optional[float] = Field(None, alias="potentialSavings")
    time_to_implement: str = Field(..., alias="timeToImplement")
    effort: str


class RecommendationSchema(WireModel):
    """Single actionable recommendation"""

    id: str
    rule_id: str = Field(..., alias="ruleId")
    priority: str
    category: str
    title: str
    description: str
    impact: ImpactSchema
    action_steps: List[str] = Field(..., alias="actionSteps")
    category_id: Optional[str] = Field(None, alias="categoryId")
    estimated_benefit: Optional[str] = Field(None, alias="estimatedBenefit")

    @classmethod
    def from_domain(cls, rec: Recommendation) -> "RecommendationSchema":
        return cls(
            id=rec.id,
            rule_id=rec.rule_id,
            priority=rec.priority,
            category=rec.category,
            title=rec.title,
            description=rec.description,
            impact=ImpactSchema(
                potential_savings=rec.impact.potential_savings,
                time_to_implement=rec.impact.time_to_implement,
                effort=rec.impact.effort,
            ),
            action_steps=list(rec.action_steps),
            category_id=rec.category_id,
            estimated_benefit=rec.estimated_benefit,
        )


class RecommendationsResponse(WireModel):
    """Response for GET /v1/insights/recommendations"""

    recommendations: List[RecommendationSchema]
    count: int
    total: int


class CategoryBenchmarkSchema(WireModel):
    category_id: str
    category_name: Optional[str] = None
    user_amount: float = Field(..., alias="userAmount")
    market_average: float = Field(..., alias="marketAverage")
    market_median: float = Field(..., alias="marketMedian")
    percentile: int = Field(..., ge=0, le=100)
    category_score: int = Field(..., ge=0, le=100, alias="categoryScore")
    comparison: str
    savings_opportunity: Optional[float] = Field(None, alias="savingsOpportunity")
    segment: Optional[str] = None

    @classmethod
    def from_domain(cls, item: CategoryBenchmark) -> "CategoryBenchmarkSchema":
        return cls(
            category_id=item.category_id,
            category_name=item.category_name,
            user_amount=item.user_amount,
            market_average=item.market_average,
            market_median=item.market_median,
            percentile=item.percentile,
            category_score=item.category_score,
            comparison=item.comparison,
            savings_opportunity=item.savings_opportunity,
            segment=item.segment,
        )


class BenchmarkResponse(WireModel):
    """Response for GET /v1/insights/benchmark"""

    overall_score: int = Field(..., ge=0, le=100, alias="overallScore")
    category_benchmarks: List[CategoryBenchmarkSchema] = Field(..., alias="categoryBenchmarks")
    total_user_expenses: float = Field(..., alias="totalUserExpenses")
    total_market_average: float = Field(..., alias="totalMarketAverage")
    savings_opportunity: Optional[float] = Field(None, alias="savingsOpportunity")
    message: Optional[str] = None

    @classmethod
    def from_domain(cls, summary: BenchmarkSummary) -> "BenchmarkResponse":
        return cls(
            overall_score=summary.overall_score,
            category_benchmarks=[CategoryBenchmarkSchema.from_domain(b) for b in summary.category_benchmarks],
            total_user_expenses=summary.total_user_expenses,
            total_market_average=summary.total_market_average,
            savings_opportunity=summary.savings_opportunity,
            message=summary.message,
        )
