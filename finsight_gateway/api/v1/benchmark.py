"""GET /v1/insights/benchmark - Market benchmark endpoint"""

import time
import logging
from datetime import date
from typing import Literal, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

from finsight_gateway.api.v1.schemas import BenchmarkResponse
from finsight_gateway.api.dependencies import get_benchmark_parameters, get_request_id, get_today, set_cache_control
from finsight_gateway.config import settings
from finsight_gateway.infrastructure.database.session import get_db
from finsight_gateway.infrastructure.database.repositories import TransactionRepository
from finsight_gateway.domain.aggregates import category_totals
from finsight_gateway.domain.benchmark import generate_benchmark
from finsight_gateway.domain.models import BenchmarkSegment
from finsight_gateway.domain.parameters import BenchmarkParameters
from finsight_gateway.domain.exceptions import InvalidRecordError
from finsight_gateway.infrastructure.observability.metrics import invalid_record_counter, record_computation
from finsight_gateway.infrastructure.observability.logging import log_computation
from finsight_gateway.utils.date_utils import period_window

router = APIRouter()


@router.get("/insights/benchmark", response_model=BenchmarkResponse)
def get_benchmark(
    request: Request,
    response: Response,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    period_months: int = Query(3, ge=1, le=12, description="Months averaged per category"),
    income_range: Optional[Literal["low", "middle", "high"]] = Query(None, description="Segment income range"),
    region: Optional[str] = Query(None, description="Segment region label"),
    age_range: Optional[str] = Query(None, description="Segment age range label"),
    db: Session = Depends(get_db),
    today: date = Depends(get_today),
    parameters: BenchmarkParameters = Depends(get_benchmark_parameters),
):
    """
    Compare monthly category spending with market references.

    Returns:
        Overall score (50 when there is no data) and per-category comparisons
    """
    start_time = time.time()
    request_id = get_request_id(request)

    segment = None
    if income_range or region or age_range:
        segment = BenchmarkSegment(age_range=age_range, region=region, income_range=income_range)

    try:
        start, end = period_window(today, period_months)
        transactions = TransactionRepository(db).get_transactions(user_id, start, end)

        summary = generate_benchmark(
            category_totals(transactions, divisor=period_months),
            segment=segment,
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
    record_computation("benchmark", insufficient_data=not summary.category_benchmarks)
    log_computation(request_id, user_id, "benchmark", duration_ms, overall_score=summary.overall_score)

    set_cache_control(response, settings.benchmark_cache_seconds)
    return BenchmarkResponse.from_domain(summary)
