"""GET /v1/insights/forecast - Income/expense projection endpoint"""

import time
import logging
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from finsight_gateway.api.v1.schemas import ForecastResponse
from finsight_gateway.api.dependencies import get_forecast_parameters, get_request_id, get_today, set_cache_control
from finsight_gateway.config import settings
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.infrastructure.database.repositories import TransactionRepository
from finsight_gateway.domain.forecasting import forecast
from finsight_gateway.domain.parameters import ForecastParameters
from finsight_gateway.domain.exceptions import InvalidRecordError
from finsight_gateway.infrastructure.observability.metrics import invalid_record_counter, record_computation
from finsight_gateway.infrastructure.observability.logging import log_computation
from finsight_gateway.utils.date_utils import period_window

router = APIRouter()


@router.get("/insights/forecast", response_model=ForecastResponse)
def get_forecast(
    request: Request,
    response: Response,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    months: int = Query(3, ge=1, le=6, description="Months to forecast"),
    history_months: int = Query(6, ge=3, le=12, description="Months of history to fit"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    parameters: ForecastParameters = Depends(get_forecast_parameters),
):
    """
    Forecast the next 1-6 months from whole past months.

    Returns:
        Forecast periods, or an empty list with a message when history is short
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        start, end = period_window(today, history_months)
        transactions = TransactionRepository(db).get_transactions(user_id, start, end)

        result = forecast(transactions, months, parameters, window_end=end)

    except InvalidRecordError as e:
        invalid_record_counter.inc()
        logging.warning(f"Invalid stored record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_computation("forecast", insufficient_data=not result.forecast)
    log_computation(request_id, user_id, "forecast", duration_ms, periods=len(result.forecast))

    set_cache_control(response, settings.forecast_cache_seconds)
    return ForecastResponse.from_domain(result)
