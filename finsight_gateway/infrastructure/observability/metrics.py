"""Prometheus metrics for monitoring computed insights and HTTP latency"""

from typing import Iterable
from prometheus_client import Counter, Histogram

# Computation metrics
computation_counter = Counter(
    "finsight_computation_total",
    "Total insight computations",
    ["kind"],  # health_score | anomalies | forecast | recommendations | benchmark
)

health_score_histogram = Histogram(
    "finsight_health_score",
    "Distribution of computed health scores",
    buckets=[20, 40, 60, 80, 100],
)

anomaly_counter = Counter(
    "finsight_anomalies_total",
    "Anomalies detected by severity",
    ["severity"],  # critical | high | moderate
)

recommendation_counter = Counter(
    "finsight_recommendations_total",
    "Recommendations emitted by priority",
    ["priority"],  # high | medium | low
)

insufficient_data_counter = Counter(
    "finsight_insufficient_data_total",
    "Computations that returned a degenerate result for lack of data",
    ["kind"],
)

invalid_record_counter = Counter(
    "finsight_invalid_records_total",
    "Requests rejected because stored records could not be normalized",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_health_score(score: int) -> None:
    computation_counter.labels(kind="health_score").inc()
    health_score_histogram.observe(score)


def record_anomalies(severities: Iterable[str]) -> None:
    computation_counter.labels(kind="anomalies").inc()
    for severity in severities:
        anomaly_counter.labels(severity=severity).inc()


def record_recommendations(priorities: Iterable[str]) -> None:
    computation_counter.labels(kind="recommendations").inc()
    for priority in priorities:
        recommendation_counter.labels(priority=priority).inc()


def record_computation(kind: str, insufficient_data: bool = False) -> None:
    """Record a computation without kind-specific detail (forecast, benchmark)"""
    computation_counter.labels(kind=kind).inc()
    if insufficient_data:
        insufficient_data_counter.labels(kind=kind).inc()
