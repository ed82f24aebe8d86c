# asset_guardian/models/user.py
from typing import Optional

from pydantic import EmailStr

from asset_guardian.core.permissions import Role
from asset_guardian.models.base import DocumentModel


class UserModel(DocumentModel):
    """Database model for users (profiles)"""
    email: EmailStr
    full_name: str
    password: str
    role: Role = Role.STAFF
    college_id: Optional[str] = None
    department_id: Optional[str] = None
    is_active: bool = True

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "abebe@example.edu",
                "full_name": "Abebe Kebede",
                "password": "password123",
                "role": "staff",
                "department_id": "60d21b4967d0d8992e610c86",
                "is_active": True
            }
        }
    }
