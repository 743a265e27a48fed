"""GET /v1/insights/health-score - Financial health score endpoint"""

import time
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from finsight_gateway.api.v1.schemas import HealthScoreResponse
from finsight_gateway.api.dependencies import (
    get_health_score_parameters,
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
from finsight_gateway.domain.health_score import calculate_health_score
from finsight_gateway.domain.parameters import HealthScoreParameters
from finsight_gateway.domain.exceptions import InvalidRecordError
from finsight_gateway.infrastructure.observability.metrics import invalid_record_counter, record_health_score
from finsight_gateway.infrastructure.observability.logging import log_computation
from finsight_gateway.utils.date_utils import add_months, period_window

router = APIRouter()


@router.get("/insights/health-score", response_model=HealthScoreResponse)
def get_health_score(
    request: Request,
    response: Response,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    period_months: int = Query(3, ge=1, le=12, description="Months in the scored window"),
    months_ago: int = Query(0, ge=0, le=24, description="Shift the window back by N months"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    parameters: HealthScoreParameters = Depends(get_health_score_parameters),
):
    """
    Compute the 0-100 financial health score.

    Flow:
    1. Build the current window and the equally long previous window
    2. Fetch transactions, budgets, active cards and balance
    3. Score both windows; the previous one only drives the trend
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        start, end = period_window(today, period_months, months_ago)
        previous_start = add_months(start, -period_months)

        transaction_repo = TransactionRepository(db)
        transactions = transaction_repo.get_transactions(user_id, start, end)
        previous_transactions = transaction_repo.get_transactions(user_id, previous_start, start)
        budget_repo = BudgetRepository(db)
        budgets = budget_repo.get_budgets(user_id, start, end)
        previous_budgets = budget_repo.get_budgets(user_id, previous_start, start)
        cards = CardRepository(db).get_active_cards(user_id)
        balance = AccountRepository(db).get_balance(user_id)

        result = calculate_health_score(
            transactions=transactions,
            budgets=budgets,
            cards=cards,
            current_balance=balance,
            previous_transactions=previous_transactions,
            previous_budgets=previous_budgets,
            period_months=period_months,
            parameters=parameters,
        )

    except InvalidRecordError as e:
        invalid_record_counter.inc()
        logging.warning(f"Invalid stored record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_health_score(result.score)
    log_computation(
        request_id,
        user_id,
        "health_score",
        duration_ms,
        score=result.score,
        category=result.category,
        trend=result.trend,
    )

    set_cache_control(response, settings.health_score_cache_seconds)
    return HealthScoreResponse.from_domain(result)
