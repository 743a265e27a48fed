"""Short-term income/expense forecasting from monthly history"""

from datetime import date
from typing import Optional, Sequence

from finsight_gateway.domain.aggregates import linear_trend, mean, monthly_aggregates, population_stddev
from finsight_gateway.domain.models import (
    ConfidenceInterval,
    ForecastMetadata,
    ForecastPeriod,
    ForecastResult,
    Transaction,
)
from finsight_gateway.domain.parameters import ForecastParameters
from finsight_gateway.utils.date_utils import add_months, first_of_month, month_key

DEFAULT_PARAMETERS = ForecastParameters()


def confidence_label(margin: float, prediction: float, parameters: ForecastParameters = DEFAULT_PARAMETERS) -> str:
    """Relative uncertainty margin / prediction; a zero prediction counts as 1"""
    relative_uncertainty = margin / (prediction or 1.0)
    if relative_uncertainty < parameters.high_confidence:
        return "high"
    elif relative_uncertainty < parameters.medium_confidence:
        return "medium"
    return "low"


def forecast(
    transactions: Sequence[Transaction],
    horizon: int = 3,
    parameters: Optional[ForecastParameters] = None,
    window_end: Optional[date] = None,
) -> ForecastResult:
    """
    Project the next 1-6 months.

    With `window_end` (the exclusive end of the history window) the history
    runs through the month before it, trailing months without activity fitted
    as zero months, and the first forecast month is the month of `window_end`.
    Without it the forecast follows the last month that has data.

    Method:
    - expenses: OLS linear trend over monthly totals (x = 0-based month index)
    - income: historical monthly average, held constant (no trend fit)
    - interval: prediction +/- 1.5 population stddevs of monthly expenses,
      lower bound clamped at 0

    Fewer than 3 historical months returns an empty forecast with a message.
    """
    parameters = parameters or DEFAULT_PARAMETERS
    monthly = monthly_aggregates(transactions, until=window_end)

    if len(monthly) < parameters.min_months:
        return ForecastResult(
            forecast=[],
            message=(
                f"Not enough data to forecast: at least {parameters.min_months} months "
                f"of history are required, found {len(monthly)}."
            ),
        )

    horizon = max(1, min(parameters.max_horizon, horizon))
    expense_totals = [m.expenses for m in monthly]
    avg_expenses = mean(expense_totals)
    avg_income = mean([m.income for m in monthly])

    slope, intercept = linear_trend(expense_totals)
    margin = population_stddev(expense_totals) * parameters.interval_sigma

    n = len(monthly)
    first_month = first_of_month(window_end) if window_end else add_months(monthly[-1].month, 1)
    periods = []
    for step in range(1, horizon + 1):
        predicted_expenses = max(0.0, intercept + slope * (n + step - 1))
        periods.append(
            ForecastPeriod(
                month=month_key(add_months(first_month, step - 1)),
                predicted_expenses=round(predicted_expenses, 2),
                predicted_income=round(avg_income, 2),
                confidence=confidence_label(margin, predicted_expenses, parameters),
                confidence_interval=ConfidenceInterval(
                    min=round(max(0.0, predicted_expenses - margin), 2),
                    max=round(predicted_expenses + margin, 2),
                ),
            )
        )

    if slope > 0:
        trend = "increasing"
    elif slope < 0:
        trend = "decreasing"
    else:
        trend = "stable"

    return ForecastResult(
        forecast=periods,
        metadata=ForecastMetadata(
            historical_periods=n,
            forecast_periods=horizon,
            avg_monthly_expenses=round(avg_expenses, 2),
            avg_monthly_income=round(avg_income, 2),
            trend=trend,
            slope=round(slope, 4),
        ),
    )
