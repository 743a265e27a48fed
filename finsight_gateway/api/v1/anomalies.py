"""GET /v1/insights/anomalies - Anomaly detection endpoint"""

import time
import logging
from datetime import date
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from finsight_gateway.api.v1.schemas import AnomaliesResponse, AnomalySchema
from finsight_gateway.api.dependencies import get_anomaly_parameters, get_request_id, get_today, set_cache_control
from finsight_gateway.config import settings
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.infrastructure.database.repositories import BudgetRepository, TransactionRepository
from finsight_gateway.domain.anomalies import detect_anomalies
from finsight_gateway.domain.parameters import AnomalyParameters
from finsight_gateway.domain.exceptions import InvalidRecordError
from finsight_gateway.infrastructure.observability.metrics import invalid_record_counter, record_anomalies
from finsight_gateway.infrastructure.observability.logging import log_computation
from finsight_gateway.utils.date_utils import period_window

router = APIRouter()


@router.get("/insights/anomalies", response_model=AnomaliesResponse)
def get_anomalies(
    request: Request,
    response: Response,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    period_months: int = Query(3, ge=1, le=12, description="Months of history to scan"),
    severity: Optional[Literal["critical", "high", "moderate"]] = Query(None, description="Only this severity"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    parameters: AnomalyParameters = Depends(get_anomaly_parameters),
):
    """
    Detect spending spikes, budget overruns and income drops.

    Returns:
        Anomalies ordered by severity, then most recent first
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        start, end = period_window(today, period_months)
        transactions = TransactionRepository(db).get_transactions(user_id, start, end)
        budgets = BudgetRepository(db).get_budgets(user_id, start, end)

        anomalies = detect_anomalies(transactions, budgets, period_months, parameters)

    except InvalidRecordError as e:
        invalid_record_counter.inc()
        logging.warning(f"Invalid stored record: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    if severity:
        anomalies = [a for a in anomalies if a.severity == severity]

    duration_ms = (time.time() - start_time) * 1000
    record_anomalies(a.severity for a in anomalies)
    log_computation(request_id, user_id, "anomalies", duration_ms, anomaly_count=len(anomalies))

    set_cache_control(response, settings.anomalies_cache_seconds)
    return AnomaliesResponse(
        anomalies=[AnomalySchema.from_domain(a) for a in anomalies],
        count=len(anomalies),
    )
