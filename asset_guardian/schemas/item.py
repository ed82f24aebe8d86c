"""
Item schema models for validation.
"""
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, Field

from asset_guardian.models.item import ItemStatus
from asset_guardian.schemas.base import DocumentResponse


class ItemBase(BaseModel):
    """Base item schema with descriptive fields."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    asset_tag: str = Field(..., min_length=1)
    serial_number: Optional[str] = None
    category: Optional[str] = None
    purchase_date: Optional[datetime] = None
    purchase_cost: Optional[float] = Field(None, ge=0)


class ItemCreate(ItemBase):
    """Schema for registering items; new stock is Available in the central store."""
    status: ItemStatus = ItemStatus.AVAILABLE
    current_custodian_id: Optional[str] = None
    owner_department_id: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Dell Latitude 5420",
                "asset_tag": "AST-2024-0001",
                "serial_number": "SN-88213",
                "category": "Laptop",
                "purchase_cost": 1250.0
            }
        }
    }


class ItemUpdate(BaseModel):
    """Schema for updating descriptive item fields."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    asset_tag: Optional[str] = Field(None, min_length=1)
    serial_number: Optional[str] = None
    category: Optional[str] = None
    purchase_date: Optional[Union[datetime, date]] = None
    purchase_cost: Optional[float] = Field(None, ge=0)

    model_config = {
        "extra": "ignore"
    }


class ItemStatusUpdate(BaseModel):
    status: ItemStatus
    expected_version: Optional[int] = None


class ItemAllocation(BaseModel):
    custodian_id: str


class ItemResponse(ItemBase, DocumentResponse):
    """Schema for item responses."""
    status: ItemStatus
    current_custodian_id: Optional[str] = None
    owner_department_id: Optional[str] = None


class ItemStats(BaseModel):
    total: int
    available: int
    allocated: int
    maintenance: int
    damaged: int
