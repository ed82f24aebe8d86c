"""
Item request schema models for validation.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from asset_guardian.models.item_request import RequestStatus, UrgencyLevel
from asset_guardian.schemas.base import DocumentResponse


class ItemRequestCreate(BaseModel):
    """Schema for submitting an item request."""
    item_name: str = Field(..., min_length=1)
    item_description: Optional[str] = None
    justification: Optional[str] = None
    quantity: int = Field(1, ge=1)
    urgency: UrgencyLevel = UrgencyLevel.MEDIUM

    model_config = {
        "json_schema_extra": {
            "example": {
                "item_name": "Projector",
                "justification": "Lecture hall B needs a replacement",
                "quantity": 1,
                "urgency": "high"
            }
        }
    }


class ItemRequestResponse(DocumentResponse):
    """Schema for item request responses."""
    requester_id: str
    requester_department_id: str
    requester_role: str
    item_name: str
    item_description: Optional[str] = None
    justification: Optional[str] = None
    quantity: int
    urgency: UrgencyLevel
    status: RequestStatus
    dept_head_approver_id: Optional[str] = None
    dean_approver_id: Optional[str] = None
    storekeeper_allocator_id: Optional[str] = None
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[str] = None
    rejected_at: Optional[datetime] = None
    allocated_item_id: Optional[str] = None
    allocated_item_ids: List[str] = []
