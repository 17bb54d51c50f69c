"""Catalog endpoints for regions, treks and batches.

Public endpoints list enabled treks and regions; admin endpoints under
/admin manage the catalog.
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_201_CREATED

from trek_api.dependencies import get_catalog_service
from trek_api.models.common import SuccessMessage
from trek_api.security import CurrentUser, require_admin
from trek_shared.models.catalog import (
    Batch,
    BatchCreate,
    BatchUpdate,
    Region,
    RegionCreate,
    RegionUpdate,
    Trek,
    TrekCreate,
    TrekUpdate,
)
from trek_shared.models.errors import BookingError, ErrorCode
from trek_shared.services.catalog import CatalogService

router = APIRouter(tags=["catalog"])
admin_router = APIRouter(prefix="/admin", tags=["admin-catalog"])


# === Public ===


@router.get(
    "/treks",
    summary="List treks",
    description="Enabled treks with their batches, optionally filtered by region.",
    response_model=list[Trek],
)
async def list_treks(
    region_id: str | None = Query(default=None),
    service: CatalogService = Depends(get_catalog_service),
) -> list[Trek]:
    return service.list_treks(region_id=region_id, enabled_only=True)


@router.get(
    "/treks/{trek_id}",
    summary="Get trek",
    response_model=Trek,
    responses={404: {"description": "Trek not found or disabled"}},
)
async def get_trek(
    trek_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> Trek:
    trek = service.get_trek(trek_id)
    if not trek.is_enabled:
        raise BookingError(ErrorCode.TREK_NOT_FOUND, details={"trek_id": trek_id})
    return trek


@router.get(
    "/regions",
    summary="List regions",
    response_model=list[Region],
)
async def list_regions(
    service: CatalogService = Depends(get_catalog_service),
) -> list[Region]:
    return service.list_regions(enabled_only=True)


# === Admin: regions ===


@admin_router.get("/regions", summary="List all regions", response_model=list[Region])
async def admin_list_regions(
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> list[Region]:
    return service.list_regions()


@admin_router.post(
    "/regions",
    summary="Create region",
    response_model=Region,
    status_code=HTTP_201_CREATED,
    responses={409: {"description": "Region with the same name exists"}},
)
async def create_region(
    body: RegionCreate,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Region:
    return service.create_region(body)


@admin_router.put("/regions/{region_id}", summary="Update region", response_model=Region)
async def update_region(
    region_id: str,
    body: RegionUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Region:
    return service.update_region(region_id, body)


@admin_router.delete("/regions/{region_id}", summary="Delete region", response_model=SuccessMessage)
async def delete_region(
    region_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> SuccessMessage:
    service.delete_region(region_id)
    return SuccessMessage(message=f"Region {region_id} deleted")


# === Admin: treks ===


@admin_router.get(
    "/treks",
    summary="List all treks",
    description="Every trek including disabled ones.",
    response_model=list[Trek],
)
async def admin_list_treks(
    region_id: str | None = Query(default=None),
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> list[Trek]:
    return service.list_treks(region_id=region_id)


@admin_router.post(
    "/treks",
    summary="Create trek",
    response_model=Trek,
    status_code=HTTP_201_CREATED,
    responses={404: {"description": "Region not found"}},
)
async def create_trek(
    body: TrekCreate,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Trek:
    return service.create_trek(body)


@admin_router.put("/treks/{trek_id}", summary="Update trek", response_model=Trek)
async def update_trek(
    trek_id: str,
    body: TrekUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Trek:
    return service.update_trek(trek_id, body)


@admin_router.patch(
    "/treks/{trek_id}/toggle-status",
    summary="Enable or disable trek",
    response_model=Trek,
)
async def toggle_trek_status(
    trek_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Trek:
    return service.toggle_trek_status(trek_id)


# === Admin: batches ===


@admin_router.post(
    "/treks/{trek_id}/batches",
    summary="Add batch",
    response_model=Batch,
    status_code=HTTP_201_CREATED,
)
async def add_batch(
    trek_id: str,
    body: BatchCreate,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Batch:
    return service.add_batch(trek_id, body)


@admin_router.put(
    "/treks/{trek_id}/batches/{batch_id}",
    summary="Update batch",
    response_model=Batch,
)
async def update_batch(
    trek_id: str,
    batch_id: str,
    body: BatchUpdate,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> Batch:
    return service.update_batch(trek_id, batch_id, body)


@admin_router.delete(
    "/treks/{trek_id}/batches/{batch_id}",
    summary="Remove batch",
    response_model=SuccessMessage,
    responses={409: {"description": "Batch has active bookings"}},
)
async def remove_batch(
    trek_id: str,
    batch_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
) -> SuccessMessage:
    service.remove_batch(trek_id, batch_id)
    return SuccessMessage(message=f"Batch {batch_id} removed")
