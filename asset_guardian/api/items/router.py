"""
Item API routes for inventory management.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.core.permissions import check_permissions, get_role_permissions
from asset_guardian.dependencies.permissions import get_current_active_user, has_permission
from asset_guardian.domains.items.service import item_service
from asset_guardian.models.item import ItemStatus
from asset_guardian.schemas.item import (
    ItemAllocation,
    ItemCreate,
    ItemResponse,
    ItemStats,
    ItemStatusUpdate,
    ItemUpdate,
)

router = APIRouter()


@router.get("/", response_model=List[ItemResponse])
async def read_items(
        page: Pagination = Depends(),
        status_filter: Optional[ItemStatus] = None,
        category: Optional[str] = None,
        custodian_id: Optional[str] = None,
        department_id: Optional[str] = None,
        search: Optional[str] = None,
        current_user: dict = Depends(has_permission("items:read"))
):
    """
    Get items with optional filtering.

    Args:
        page: Pagination parameters
        status_filter: Filter by item status
        category: Filter by category
        custodian_id: Filter by current custodian
        department_id: Filter by owning department
        search: Match on name, asset tag or serial number
        current_user: Current user from token

    Returns:
        List of items
    """
    return await item_service.get_items(
        page.skip,
        page.limit,
        status_filter.value if status_filter else None,
        category,
        custodian_id,
        department_id,
        search,
    )


@router.get("/stats", response_model=ItemStats)
async def read_item_stats(
        department_id: Optional[str] = None,
        current_user: dict = Depends(has_permission("items:read"))
):
    return await item_service.get_stats(department_id)


@router.get("/me", response_model=List[ItemResponse])
async def read_my_items(current_user: dict = Depends(get_current_active_user)):
    """
    Get items currently allocated to the caller.
    """
    return await item_service.get_my_items(current_user)


@router.get("/{item_id}", response_model=ItemResponse)
async def read_item(
        item_id: str,
        current_user: dict = Depends(get_current_active_user)
):
    """
    Get item by ID. Custodians may read their own items without items:read.
    """
    item = await item_service.get_item(item_id)
    if (item.get("current_custodian_id") != str(current_user["_id"])
            and not check_permissions(get_role_permissions(current_user.get("role")), "items:read")):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    return item


@router.post("/", response_model=ItemResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
        item_in: ItemCreate,
        current_user: dict = Depends(has_permission("items:write"))
):
    return await item_service.create_item(item_in.model_dump(), current_user)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
        item_id: str,
        item_in: ItemUpdate,
        current_user: dict = Depends(has_permission("items:write"))
):
    return await item_service.update_item(item_id, item_in.model_dump(exclude_unset=True))


@router.patch("/{item_id}/status", response_model=ItemResponse)
async def update_item_status(
        item_id: str,
        status_in: ItemStatusUpdate,
        current_user: dict = Depends(has_permission("items:write"))
):
    """
    Change an item's status. Setting Available clears the custodian.
    """
    return await item_service.change_status(
        item_id, status_in.status.value, current_user, status_in.expected_version
    )


@router.post("/{item_id}/allocate", response_model=ItemResponse)
async def allocate_item(
        item_id: str,
        allocation: ItemAllocation,
        current_user: dict = Depends(has_permission("items:write"))
):
    return await item_service.allocate_item(item_id, allocation.custodian_id, current_user)


@router.post("/{item_id}/return-to-store", response_model=ItemResponse)
async def return_item_to_store(
        item_id: str,
        current_user: dict = Depends(has_permission("items:write"))
):
    return await item_service.return_to_store(item_id, current_user)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
        item_id: str,
        current_user: dict = Depends(has_permission("items:delete"))
):
    """
    Delete an item. Fails with 409 while any workflow record references it.
    """
    await item_service.delete_item(item_id)
