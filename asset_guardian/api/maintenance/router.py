"""
Maintenance request API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.maintenance.service import maintenance_service
from asset_guardian.models.maintenance import MaintenanceStatus
from asset_guardian.schemas.maintenance import (
    MaintenanceRequestCreate,
    MaintenanceRequestResponse,
    MaintenanceResolution,
)

router = APIRouter()


@router.post("/", response_model=MaintenanceRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_maintenance_request(
        maintenance_in: MaintenanceRequestCreate,
        current_user: dict = Depends(has_permission("maintenance:write"))
):
    """
    Report an item for maintenance; the item goes Under Maintenance immediately.
    """
    return await maintenance_service.create_maintenance(current_user, maintenance_in.model_dump())


@router.get("/", response_model=List[MaintenanceRequestResponse])
async def read_maintenance_requests(
        page: Pagination = Depends(),
        status_filter: Optional[MaintenanceStatus] = None,
        item_id: Optional[str] = None,
        current_user: dict = Depends(has_permission("maintenance:read"))
):
    return await maintenance_service.get_maintenance_requests(
        current_user, status_filter.value if status_filter else None, item_id, page.skip, page.limit
    )


@router.get("/{maintenance_id}", response_model=MaintenanceRequestResponse)
async def read_maintenance_request(
        maintenance_id: str,
        current_user: dict = Depends(has_permission("maintenance:read"))
):
    return await maintenance_service.get_maintenance(maintenance_id, current_user)


@router.post("/{maintenance_id}/complete", response_model=MaintenanceRequestResponse)
async def complete_maintenance_request(
        maintenance_id: str,
        resolution: MaintenanceResolution = Body(default_factory=MaintenanceResolution),
        current_user: dict = Depends(has_permission("maintenance:approve"))
):
    return await maintenance_service.complete_maintenance(
        maintenance_id, current_user, resolution.resolution_notes, resolution.expected_version
    )


@router.post("/{maintenance_id}/unrepairable", response_model=MaintenanceRequestResponse)
async def mark_maintenance_unrepairable(
        maintenance_id: str,
        resolution: MaintenanceResolution = Body(default_factory=MaintenanceResolution),
        current_user: dict = Depends(has_permission("maintenance:approve"))
):
    """
    Close the maintenance request as unrepairable; the item becomes Damaged.
    """
    return await maintenance_service.mark_unrepairable(
        maintenance_id, current_user, resolution.resolution_notes, resolution.expected_version
    )
