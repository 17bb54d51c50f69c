"""Admin statistics endpoints."""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from trek_api.dependencies import get_stats_service
from trek_api.security import CurrentUser, require_admin
from trek_shared.models.common import ensure_utc
from trek_shared.models.stats import DashboardStats, SalesStats
from trek_shared.services.stats import StatsService

router = APIRouter(prefix="/admin/stats", tags=["admin-stats"])


@router.get(
    "/sales",
    summary="Sales statistics",
    description="""
Revenue over confirmed and completed bookings, net of successful refunds.

**Query Parameters:**
- `start_date`, `end_date`: inclusive bounds on booking creation time
- `trek_id`, `batch_id`: restrict to one trek or batch
""",
    response_model=SalesStats,
)
async def get_sales_stats(
    start_date: dt.datetime | None = Query(default=None),
    end_date: dt.datetime | None = Query(default=None),
    trek_id: str | None = Query(default=None),
    batch_id: str | None = Query(default=None),
    admin: CurrentUser = Depends(require_admin),
    service: StatsService = Depends(get_stats_service),
) -> SalesStats:
    return service.get_sales_stats(
        start=ensure_utc(start_date) if start_date else None,
        end=ensure_utc(end_date) if end_date else None,
        trek_id=trek_id,
        batch_id=batch_id,
    )


@router.get(
    "/dashboard",
    summary="Dashboard overview",
    description="Trek and booking counts, recent bookings and batches starting within 30 days.",
    response_model=DashboardStats,
)
async def get_dashboard_stats(
    admin: CurrentUser = Depends(require_admin),
    service: StatsService = Depends(get_stats_service),
) -> DashboardStats:
    return service.get_dashboard_stats()
