"""
User schema models for validation.
"""
from typing import List, Optional

from pydantic import BaseModel, EmailStr

from asset_guardian.core.permissions import Role
from asset_guardian.schemas.base import DocumentResponse


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    full_name: str
    is_active: bool = True


class UserCreate(UserBase):
    """Schema for creating users."""
    password: str
    role: Role = Role.STAFF
    college_id: Optional[str] = None
    department_id: Optional[str] = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "abebe@example.edu",
                "full_name": "Abebe Kebede",
                "password": "password123",
                "role": "staff",
                "department_id": "60d21b4967d0d8992e610c86"
            }
        }
    }


class UserUpdate(BaseModel):
    """Schema for updating users."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None

    model_config = {
        "extra": "ignore"
    }


class RoleAssignment(BaseModel):
    """Schema for assigning a role and affiliation."""
    role: Role
    college_id: Optional[str] = None
    department_id: Optional[str] = None


class UserResponse(UserBase, DocumentResponse):
    """Schema for user responses."""
    role: Role
    college_id: Optional[str] = None
    department_id: Optional[str] = None


class UserWithPermissions(UserResponse):
    """Schema for user with permissions."""
    permissions: List[str] = []
