# asset_guardian/models/item_request.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from asset_guardian.models.base import DocumentModel


class RequestStatus(str, Enum):
    PENDING_DEPT_HEAD = "pending_dept_head"
    PENDING_DEAN = "pending_dean"
    PENDING_STOREKEEPER = "pending_storekeeper"
    APPROVED = "approved"
    REJECTED = "rejected"


class UrgencyLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ItemRequestModel(DocumentModel):
    """Database model for item requests moving through the approval chain"""
    requester_id: str
    requester_department_id: str
    requester_role: str
    item_name: str
    item_description: Optional[str] = None
    justification: Optional[str] = None
    quantity: int = 1
    urgency: UrgencyLevel = UrgencyLevel.MEDIUM
    status: RequestStatus = RequestStatus.PENDING_DEPT_HEAD
    dept_head_approver_id: Optional[str] = None
    dean_approver_id: Optional[str] = None
    storekeeper_allocator_id: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[str] = None
    rejected_at: Optional[datetime] = None
    allocated_item_id: Optional[str] = None
    allocated_item_ids: List[str] = []
