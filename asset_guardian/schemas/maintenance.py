from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from asset_guardian.models.item_request import UrgencyLevel
from asset_guardian.models.maintenance import MaintenanceStatus, MaintenanceType
from asset_guardian.schemas.base import DocumentResponse


class MaintenanceRequestCreate(BaseModel):
    """Schema for reporting an item for maintenance."""
    item_id: str
    maintenance_type: MaintenanceType = MaintenanceType.REPAIR
    issue_description: str = Field(..., min_length=1)
    urgency: UrgencyLevel = UrgencyLevel.MEDIUM


class MaintenanceResolution(BaseModel):
    resolution_notes: Optional[str] = None
    expected_version: Optional[int] = None


class MaintenanceRequestResponse(DocumentResponse):
    item_id: str
    requester_id: str
    maintenance_type: MaintenanceType
    issue_description: str
    urgency: UrgencyLevel
    status: MaintenanceStatus
    previous_item_status: Optional[str] = None
    resolution_notes: Optional[str] = None
    processed_by_id: Optional[str] = None
    processed_at: Optional[datetime] = None
