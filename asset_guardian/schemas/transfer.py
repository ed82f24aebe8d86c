"""
Transfer schema models for validation.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from asset_guardian.models.transfer import TransferStatus, TransferType
from asset_guardian.schemas.base import DocumentResponse


class TransferCreate(BaseModel):
    """Schema for requesting a transfer of an item the caller holds."""
    item_id: str
    receiver_id: str
    reason: Optional[str] = None


class TransferResponse(DocumentResponse):
    """Schema for transfer responses."""
    item_id: str
    initiator_id: str
    receiver_id: str
    initiator_department_id: Optional[str] = None
    receiver_department_id: Optional[str] = None
    approving_department_id: Optional[str] = None
    transfer_type: TransferType
    reason: Optional[str] = None
    status: TransferStatus
    dept_head_approver_id: Optional[str] = None
    dean_approver_id: Optional[str] = None
    storekeeper_approver_id: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[str] = None
    rejected_at: Optional[datetime] = None
    requested_at: datetime
    completed_at: Optional[datetime] = None
