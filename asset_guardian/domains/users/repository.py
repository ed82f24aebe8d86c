"""
User repository for database operations.
"""
from typing import Any, Dict, List, Optional

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import USERS


class UserRepository(BaseRepository):
    """
    Repository for user data access.
    Extends BaseRepository with user-specific operations.
    """

    collection_name = USERS
    entity_label = "User"

    async def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Find a user by email.

        Args:
            email: User email

        Returns:
            User document or None if not found
        """
        return await self.find_one({"email": email})

    async def find_active_by_role(self, role: str, session=None) -> List[Dict[str, Any]]:
        return await self.find_many({"role": role, "is_active": True}, limit=1000, session=session)

    async def find_by_department(self, department_id: str, skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.find_many(
            {"department_id": department_id, "is_active": True}, skip, limit, sort_by="full_name"
        )

    async def email_exists(self, email: str) -> bool:
        return await self.exists({"email": email})
