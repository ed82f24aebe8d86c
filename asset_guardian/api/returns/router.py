"""
Return request API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.returns.service import return_service
from asset_guardian.models.return_request import ReturnStatus
from asset_guardian.schemas.return_request import ReturnRequestCreate, ReturnRequestResponse
from asset_guardian.schemas.workflow import DecisionRequest

router = APIRouter()


@router.post("/", response_model=ReturnRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_return(
        return_in: ReturnRequestCreate,
        current_user: dict = Depends(has_permission("returns:write"))
):
    return await return_service.create_return(current_user, return_in.item_id, return_in.reason)


@router.get("/", response_model=List[ReturnRequestResponse])
async def read_returns(
        page: Pagination = Depends(),
        status_filter: Optional[ReturnStatus] = None,
        current_user: dict = Depends(has_permission("returns:read"))
):
    """
    Storekeepers and admins see every return; other users their own.
    """
    return await return_service.get_returns(
        current_user, status_filter.value if status_filter else None, page.skip, page.limit
    )


@router.get("/{return_id}", response_model=ReturnRequestResponse)
async def read_return(
        return_id: str,
        current_user: dict = Depends(has_permission("returns:read"))
):
    return await return_service.get_return(return_id, current_user)


@router.post("/{return_id}/decision", response_model=ReturnRequestResponse)
async def decide_return(
        return_id: str,
        decision: DecisionRequest,
        current_user: dict = Depends(has_permission("returns:approve"))
):
    return await return_service.decide(return_id, current_user, decision.model_dump())
