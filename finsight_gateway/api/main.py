"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finsight_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finsight_gateway.api.v1 import anomalies, benchmark, forecast, health_score, recommendations
from finsight_gateway.infrastructure.observability.logging import setup_logging
from finsight_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Finsight Gateway",
        description="Personal-finance analytics: health score, anomalies, forecast, recommendations, benchmark",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(health_score.router, prefix="/v1", tags=["health-score"])
    app.include_router(anomalies.router, prefix="/v1", tags=["anomalies"])
    app.include_router(forecast.router, prefix="/v1", tags=["forecast"])
    app.include_router(recommendations.router, prefix="/v1", tags=["recommendations"])
    app.include_router(benchmark.router, prefix="/v1", tags=["benchmark"])

    return app


app = create_app()
