"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from mailcenter_pricing.api.middleware import RequestIDMiddleware, MetricsMiddleware
from mailcenter_pricing.api.v1 import audit, pricing, renewal
from mailcenter_pricing.infrastructure.observability.logging import setup_logging
from mailcenter_pricing.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Mail-Center Pricing Service",
        description="Versioned mailbox rates, price quotes and renewal proration",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(renewal.router, prefix="/v1", tags=["renewals"])
    app.include_router(pricing.router, prefix="/v1", tags=["pricing"])
    app.include_router(audit.router, prefix="/v1", tags=["audit"])

    return app


app = create_app()
