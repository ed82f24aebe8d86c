# asset_guardian/models/transfer.py
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from asset_guardian.models.base import DocumentModel
from asset_guardian.utils.datetime_handler import DateTimeHandler


class TransferStatus(str, Enum):
    PENDING_DEPT_HEAD_APPROVAL = "pending_dept_head_approval"
    PENDING_DEAN_APPROVAL = "pending_dean_approval"
    PENDING_STOREKEEPER = "pending_storekeeper"
    PENDING_RECEIVER_ACCEPTANCE = "pending_receiver_acceptance"
    COMPLETED = "completed"
    REJECTED = "rejected"


class TransferType(str, Enum):
    INTRA_DEPARTMENT = "intra_department"
    INTER_DEPARTMENT = "inter_department"
    INTER_COLLEGE = "inter_college"


class TransferModel(DocumentModel):
    """Database model for custody transfers of an existing item"""
    item_id: str
    initiator_id: str
    receiver_id: str
    initiator_department_id: Optional[str] = None
    receiver_department_id: Optional[str] = None
    # Department whose head and dean sign off; the initiator's when the receiver has none
    approving_department_id: Optional[str] = None
    transfer_type: TransferType = TransferType.INTRA_DEPARTMENT
    reason: Optional[str] = None
    status: TransferStatus = TransferStatus.PENDING_STOREKEEPER
    dept_head_approver_id: Optional[str] = None
    dean_approver_id: Optional[str] = None
    storekeeper_approver_id: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[str] = None
    rejected_at: Optional[datetime] = None
    requested_at: datetime = Field(default_factory=DateTimeHandler.get_current_datetime)
    completed_at: Optional[datetime] = None
    # Cleared once completed or rejected; at most one open transfer per item
    is_open: bool = True
