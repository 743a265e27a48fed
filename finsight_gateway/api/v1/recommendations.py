"""GET /v1/insights/recommendations - Prioritized recommendations endpoint"""

import time
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from finsight_gateway.api.v1.schemas import RecommendationSchema, RecommendationsResponse
from finsight_gateway.api.dependencies import (
    get_health_score_parameters,
    get_recommendation_parameters,
    get_request_id,
    get_today,
    set_cache_control,
)
from finsight_gateway.config import settings
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.infrastructure.database.repositories import (
    AccountRepository,
    BudgetRepository,
    CardRepository,
    TransactionRepository,
)
from finsight_gateway.domain.aggregates import category_totals, total_expenses, total_income
from finsight_gateway.domain.health_score import calculate_health_score
from finsight_gateway.domain.recommendations import generate_recommendations
from finsight_gateway.domain.parameters import HealthScoreParameters, RecommendationParameters
from finsight_gateway.domain.exceptions import InvalidRecordError
from finsight_gateway.infrastructure.observability.metrics import invalid_record_counter, record_recommendations
from finsight_gateway.infrastructure.observability.logging import log_computation
from finsight_gateway.utils.date_utils import period_window

router = APIRouter()

TOP_CATEGORY_COUNT = 10


@router.get("/insights/recommendations", response_model=RecommendationsResponse)
def get_recommendations(
    request: Request,
    response: Response,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    period_months: int = Query(3, ge=1, le=12, description="Months of history to analyze"),
    limit: int = Query(10, ge=1, le=50, description="Maximum recommendations returned"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    score_parameters: HealthScoreParameters = Depends(get_health_score_parameters),
    parameters: RecommendationParameters = Depends(get_recommendation_parameters),
):
    """
    Generate recommendations from the health score and spending aggregates.

    Flow:
    1. Fetch the window snapshot and compute the health score
    2. Aggregate income, expenses and the top expense categories
    3. Run the rule table and truncate to `limit`
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        start, end = period_window(today, period_months)
        transactions = TransactionRepository(db).get_transactions(user_id, start, end)
        budgets = BudgetRepository(db).get_budgets(user_id, start, end)
        cards = CardRepository(db).get_active_cards(user_id)
        balance = AccountRepository(db).get_balance(user_id)

        health_score = calculate_health_score(
            transactions=transactions,
            budgets=budgets,
            cards=cards,
            current_balance=balance,
            period_months=period_months,
            parameters=score_parameters,
        )

        recommendations = generate_recommendations(
            transactions=transactions,
            budgets=budgets,
            health_score=health_score,
            total_income=total_income(transactions),
            total_expenses=total_expenses(transactions),
            top_categories=category_totals(transactions)[:TOP_CATEGORY_COUNT],
            parameters=parameters,
        )

    except InvalidRecordError as e:
        invalid_record_counter.inc()
        logging.warning(f"Invalid stored record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    limited = recommendations[:limit]

    duration_ms = (time.time() - start_time) * 1000
    record_recommendations(r.priority for r in limited)
    log_computation(
        request_id,
        user_id,
        "recommendations",
        duration_ms,
        returned=len(limited),
        total=len(recommendations),
        health_score=health_score.score,
    )

    set_cache_control(response, settings.recommendations_cache_seconds)
    return RecommendationsResponse(
        recommendations=[RecommendationSchema.from_domain(r) for r in limited],
        count=len(limited),
        total=len(recommendations),
    )
