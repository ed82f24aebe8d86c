# asset_guardian/models/item.py
from datetime import datetime
from enum import Enum
from typing import Optional

from asset_guardian.models.base import DocumentModel


class ItemStatus(str, Enum):
    AVAILABLE = "Available"
    ALLOCATED = "Allocated"
    UNDER_MAINTENANCE = "Under Maintenance"
    DAMAGED = "Damaged"


class ItemModel(DocumentModel):
    """
    Database model for items (assets).

    `Allocated` implies a custodian, `Available` implies none.
    A null owner department means the item is in the central store.
    """
    name: str
    description: Optional[str] = None
    asset_tag: str
    serial_number: Optional[str] = None
    category: Optional[str] = None
    status: ItemStatus = ItemStatus.AVAILABLE
    current_custodian_id: Optional[str] = None
    owner_department_id: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_cost: Optional[float] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Dell Latitude 5420",
                "asset_tag": "AST-2024-0001",
                "serial_number": "SN-88213",
                "category": "Laptop",
                "status": "Available"
            }
        }
    }
