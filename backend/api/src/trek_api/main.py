"""FastAPI application for the trek booking REST API.

Serves the public catalog, user bookings and the admin back office
(bookings, cancellations and refunds, catalog, promotions, statistics).
Runs on AWS Lambda behind API Gateway via Mangum, or locally with uvicorn.
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from trek_api.exceptions import register_exception_handlers
from trek_api.middleware.correlation import CORRELATION_ID_HEADER, CorrelationIdMiddleware
from trek_api.routes import (
    admin_bookings_router,
    admin_catalog_router,
    admin_promotions_router,
    bookings_router,
    catalog_router,
    health_router,
    promotions_router,
    stats_router,
)
from trek_shared.utils.logging import configure_logging

logger = logging.getLogger(__name__)
configure_logging()

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"

app = FastAPI(
    title="Trek Booking API",
    description="REST API for trek bookings, cancellations and refunds",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CORRELATION_ID_HEADER],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

# Include routers under /api prefix
# This matches CloudFront routing: /api/* → API Gateway
app.include_router(health_router, prefix="/api")
app.include_router(catalog_router, prefix="/api")
app.include_router(promotions_router, prefix="/api")
app.include_router(bookings_router, prefix="/api")
app.include_router(admin_bookings_router, prefix="/api")
app.include_router(admin_catalog_router, prefix="/api")
app.include_router(admin_promotions_router, prefix="/api")
app.include_router(stats_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    """Root health check endpoint at /api/ping."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "trek-api",
    }


# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: True)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "trek_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["backend/api/src", "backend/shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
