"""
Transfer API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, status

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.transfers.service import transfer_service
from asset_guardian.models.transfer import TransferStatus
from asset_guardian.schemas.transfer import TransferCreate, TransferResponse
from asset_guardian.schemas.workflow import CommentRequest, DecisionRequest

router = APIRouter()


@router.post("/", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
async def create_transfer(
        transfer_in: TransferCreate,
        current_user: dict = Depends(has_permission("transfers:write"))
):
    """
    Request to hand an item the caller holds over to another user.
    """
    return await transfer_service.create_transfer(
        current_user, transfer_in.item_id, transfer_in.receiver_id, transfer_in.reason
    )


@router.get("/me", response_model=List[TransferResponse])
async def read_my_transfers(
        page: Pagination = Depends(),
        current_user: dict = Depends(has_permission("transfers:read"))
):
    return await transfer_service.get_my_transfers(current_user, page.skip, page.limit)


@router.get("/incoming", response_model=List[TransferResponse])
async def read_incoming_transfers(
        page: Pagination = Depends(),
        current_user: dict = Depends(has_permission("transfers:read"))
):
    """
    Get transfers waiting for the caller to accept or reject.
    """
    return await transfer_service.get_incoming_transfers(current_user, page.skip, page.limit)


@router.get("/queue", response_model=List[TransferResponse])
async def read_approval_queue(
        page: Pagination = Depends(),
        current_user: dict = Depends(has_permission("transfers:approve"))
):
    return await transfer_service.get_approval_queue(current_user, page.skip, page.limit)


@router.get("/", response_model=List[TransferResponse])
async def read_transfers(
        page: Pagination = Depends(),
        status_filter: Optional[TransferStatus] = None,
        current_user: dict = Depends(has_permission("transfers:read"))
):
    return await transfer_service.get_transfers(
        current_user, status_filter.value if status_filter else None, page.skip, page.limit
    )


@router.get("/{transfer_id}", response_model=TransferResponse)
async def read_transfer(
        transfer_id: str,
        current_user: dict = Depends(has_permission("transfers:read"))
):
    return await transfer_service.get_transfer(transfer_id, current_user)


@router.post("/{transfer_id}/decision", response_model=TransferResponse)
async def decide_transfer(
        transfer_id: str,
        decision: DecisionRequest,
        current_user: dict = Depends(has_permission("transfers:approve"))
):
    """
    Approve or reject the transfer's current stage.
    Stage roles and scope are checked against the transfer itself.
    """
    return await transfer_service.advance(transfer_id, current_user, decision.model_dump())


@router.post("/{transfer_id}/accept", response_model=TransferResponse)
async def accept_transfer(
        transfer_id: str,
        body: CommentRequest = Body(default_factory=CommentRequest),
        current_user: dict = Depends(has_permission("transfers:write"))
):
    """
    Receiver accepts the item; custody moves to the receiver.
    """
    return await transfer_service.accept_receiver(transfer_id, current_user, body.comment, body.expected_version)


@router.post("/{transfer_id}/reject", response_model=TransferResponse)
async def reject_transfer(
        transfer_id: str,
        body: CommentRequest = Body(default_factory=CommentRequest),
        current_user: dict = Depends(has_permission("transfers:write"))
):
    """
    Receiver declines the item; it stays with the initiator.
    """
    return await transfer_service.reject_receiver(transfer_id, current_user, body.comment, body.expected_version)
