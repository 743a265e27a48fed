"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Request, Response

from finsight_gateway.config import settings
from finsight_gateway.domain.parameters import (
    AnomalyParameters,
    BenchmarkParameters,
    ForecastParameters,
    HealthScoreParameters,
    RecommendationParameters,
)


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Reference date for analysis windows (overridden in tests)"""
    return date.today()


def set_cache_control(response: Response, max_age_seconds: int) -> None:
    """Results are per-user and deterministic for a snapshot: private cache only"""
    response.headers["Cache-Control"] = f"private, max-age={max_age_seconds}"


def get_health_score_parameters() -> HealthScoreParameters:
    return HealthScoreParameters(
        healthy_spending_ratio=settings.healthy_spending_ratio,
        overspend_ceiling_ratio=settings.overspend_ceiling_ratio,
        budget_overrun_penalty=settings.budget_overrun_penalty,
        savings_target_rate=settings.savings_target_rate,
        reserve_target_days=settings.reserve_target_days,
        trend_tolerance_points=settings.trend_tolerance_points,
    )


def get_anomaly_parameters() -> AnomalyParameters:
    return AnomalyParameters(
        high_sigma=settings.anomaly_high_sigma,
        critical_sigma=settings.anomaly_critical_sigma,
        min_history=settings.anomaly_min_history,
        income_drop_high=settings.income_drop_high,
        income_drop_critical=settings.income_drop_critical,
        unusual_min_expenses=settings.unusual_min_expenses,
        unusual_frequency_share=settings.unusual_frequency_share,
        unusual_min_average=settings.unusual_min_average,
    )


def get_forecast_parameters() -> ForecastParameters:
    return ForecastParameters(
        min_months=settings.forecast_min_months,
        interval_sigma=settings.forecast_interval_sigma,
        high_confidence=settings.forecast_high_confidence,
        medium_confidence=settings.forecast_medium_confidence,
    )


def get_recommendation_parameters() -> RecommendationParameters:
    return RecommendationParameters(
        controle_gastos_threshold=settings.recommendation_controle_gastos_threshold,
        poupanca_threshold=settings.recommendation_poupanca_threshold,
        previsibilidade_threshold=settings.recommendation_previsibilidade_threshold,
        dividas_threshold=settings.recommendation_dividas_threshold,
        savings_target_rate=settings.savings_target_rate,
        concentration_share=settings.recommendation_concentration_share,
        unbudgeted_minimum=settings.recommendation_unbudgeted_minimum,
        rising_trend=settings.recommendation_rising_trend,
        invest_min_score=settings.recommendation_invest_min_score,
        high_deviation=settings.recommendation_high_deviation,
        medium_deviation=settings.recommendation_medium_deviation,
        savings_income_share=settings.recommendation_savings_income_share,
        budgeting_savings_share=settings.recommendation_budgeting_savings_share,
        diversification_savings_share=settings.recommendation_diversification_savings_share,
    )


def get_benchmark_parameters() -> BenchmarkParameters:
    return BenchmarkParameters(
        default_market_average=settings.benchmark_default_market_average,
        savings_share_of_excess=settings.benchmark_savings_share_of_excess,
        neutral_score=settings.benchmark_neutral_score,
    )
