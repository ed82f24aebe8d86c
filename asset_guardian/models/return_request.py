# asset_guardian/models/return_request.py
from datetime import datetime
from enum import Enum
from typing import Optional

from asset_guardian.models.base import DocumentModel


class ReturnStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReturnRequestModel(DocumentModel):
    """Database model for requests to return an item to the central store"""
    item_id: str
    requester_id: str
    reason: Optional[str] = None
    status: ReturnStatus = ReturnStatus.PENDING
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[str] = None
    rejected_at: Optional[datetime] = None
    processed_by_id: Optional[str] = None
    processed_at: Optional[datetime] = None
