"""Tunable constants for the analytics engines.

Defaults are the production thresholds; the API layer builds these from
settings so every threshold can be overridden through the environment.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class HealthScoreParameters:
    healthy_spending_ratio: float = 0.70
    overspend_ceiling_ratio: float = 1.5
    budget_overrun_penalty: float = 0.2
    savings_target_rate: float = 0.20
    reserve_target_days: float = 180.0
    days_per_month: float = 30.0
    trend_tolerance_points: float = 5.0


@dataclass(frozen=True)
class AnomalyParameters:
    high_sigma: float = 2.0
    critical_sigma: float = 3.0
    min_history: int = 2  # other transactions in the category
    income_drop_high: float = 0.30
    income_drop_critical: float = 0.50
    unusual_min_expenses: int = 10  # expenses in the window before rare categories are judged
    unusual_frequency_share: float = 0.30  # of the average per-category count
    unusual_min_average: float = 500.0


@dataclass(frozen=True)
class ForecastParameters:
    min_months: int = 3
    max_horizon: int = 6
    interval_sigma: float = 1.5
    high_confidence: float = 0.15
    medium_confidence: float = 0.30


@dataclass(frozen=True)
class RecommendationParameters:
    controle_gastos_threshold: float = 20.0
    poupanca_threshold: float = 15.0
    previsibilidade_threshold: float = 12.0
    dividas_threshold: float = 7.0
    savings_target_rate: float = 0.20
    concentration_share: float = 0.30
    unbudgeted_minimum: float = 200.0
    rising_trend: float = 0.10  # monthly slope relative to the mean
    invest_min_score: int = 60
    high_deviation: float = 0.5
    medium_deviation: float = 0.2
    savings_income_share: float = 0.15  # of income, suggested by increase-savings
    budgeting_savings_share: float = 0.10  # of unbudgeted spend
    diversification_savings_share: float = 0.15  # of the concentrated category


@dataclass(frozen=True)
class BenchmarkParameters:
    default_market_average: float = 300.0
    savings_share_of_excess: float = 0.30
    neutral_score: int = 50
