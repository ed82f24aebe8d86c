# asset_guardian/models/maintenance.py
from datetime import datetime
from enum import Enum
from typing import Optional

from asset_guardian.models.base import DocumentModel
from asset_guardian.models.item_request import UrgencyLevel


class MaintenanceStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    UNREPAIRABLE = "unrepairable"


class MaintenanceType(str, Enum):
    REPAIR = "repair"
    SERVICE = "service"
    REPLACEMENT = "replacement"
    UPGRADE = "upgrade"


class MaintenanceRequestModel(DocumentModel):
    """Database model for maintenance reports on an item"""
    item_id: str
    requester_id: str
    maintenance_type: MaintenanceType = MaintenanceType.REPAIR
    issue_description: str
    urgency: UrgencyLevel = UrgencyLevel.MEDIUM
    status: MaintenanceStatus = MaintenanceStatus.PENDING
    previous_item_status: Optional[str] = None
    resolution_notes: Optional[str] = None
    processed_by_id: Optional[str] = None
    processed_at: Optional[datetime] = None
