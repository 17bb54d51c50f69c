"""Health check endpoint."""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Health check",
    description="Liveness probe. Does not touch DynamoDB or Stripe.",
)
async def health() -> dict[str, Any]:
    return {
        "status": "healthy",
        "environment": os.environ.get("ENVIRONMENT", "dev"),
        "timestamp": datetime.now(UTC).isoformat(),
    }
