"""
Item request API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.requests.service import request_service
from asset_guardian.models.item_request import RequestStatus
from asset_guardian.schemas.item_request import ItemRequestCreate, ItemRequestResponse
from asset_guardian.schemas.workflow import DecisionRequest

router = APIRouter()


@router.post("/", response_model=ItemRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
        request_in: ItemRequestCreate,
        current_user: dict = Depends(has_permission("requests:write"))
):
    """
    Submit an item request. Department heads start at dean approval.
    """
    return await request_service.create_request(current_user, request_in.model_dump())


@router.get("/me", response_model=List[ItemRequestResponse])
async def read_my_requests(
        page: Pagination = Depends(),
        current_user: dict = Depends(has_permission("requests:read"))
):
    return await request_service.get_my_requests(current_user, page.skip, page.limit)


@router.get("/queue", response_model=List[ItemRequestResponse])
async def read_approval_queue(
        page: Pagination = Depends(),
        current_user: dict = Depends(has_permission("requests:approve"))
):
    """
    Get requests waiting on the caller's role within the caller's department or college.
    """
    return await request_service.get_approval_queue(current_user, page.skip, page.limit)


@router.get("/", response_model=List[ItemRequestResponse])
async def read_requests(
        page: Pagination = Depends(),
        status_filter: Optional[RequestStatus] = None,
        current_user: dict = Depends(has_permission("requests:read"))
):
    return await request_service.get_requests(
        current_user, status_filter.value if status_filter else None, page.skip, page.limit
    )


@router.get("/{request_id}", response_model=ItemRequestResponse)
async def read_request(
        request_id: str,
        current_user: dict = Depends(has_permission("requests:read"))
):
    return await request_service.get_request(request_id, current_user)


@router.post("/{request_id}/decision", response_model=ItemRequestResponse)
async def decide_request(
        request_id: str,
        decision: DecisionRequest,
        current_user: dict = Depends(has_permission("requests:approve"))
):
    """
    Approve or reject the request's current stage.

    Args:
        request_id: Request ID
        decision: action, comment, item_ids (storekeeper allocation of staff requests), expected_version
        current_user: Current user from token

    Returns:
        Updated request
    """
    return await request_service.advance(request_id, current_user, decision.model_dump())
