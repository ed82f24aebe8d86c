from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from asset_guardian.models.return_request import ReturnStatus
from asset_guardian.schemas.base import DocumentResponse


class ReturnRequestCreate(BaseModel):
    """Schema for asking to return an item to the central store."""
    item_id: str
    reason: Optional[str] = None


class ReturnRequestResponse(DocumentResponse):
    item_id: str
    requester_id: str
    reason: Optional[str] = None
    status: ReturnStatus
    rejection_reason: Optional[str] = None
    rejected_by_id: Optional[str] = None
    rejected_at: Optional[datetime] = None
    processed_by_id: Optional[str] = None
    processed_at: Optional[datetime] = None
