"""
Notification repository for database operations.
"""
from typing import Any, Dict, List

from asset_guardian.db.base_repository import BaseRepository
from asset_guardian.db.mongodb import NOTIFICATIONS
from asset_guardian.utils.datetime_handler import DateTimeHandler


class NotificationRepository(BaseRepository):
    """
    Repository for notification data access.
    """

    collection_name = NOTIFICATIONS
    entity_label = "Notification"

    async def find_by_user(self, user_id: str, unread_only: bool = False,
                           skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {"user_id": user_id}
        if unread_only:
            query["is_read"] = False
        return await self.find_many(query, skip, limit, sort_by="created_at", sort_desc=True)

    async def count_unread(self, user_id: str) -> int:
        return await self.count({"user_id": user_id, "is_read": False})

    async def mark_all_read(self, user_id: str) -> int:
        """
        Mark every unread notification of a user as read.

        Args:
            user_id: Owner of the notifications

        Returns:
            Number of notifications updated
        """
        result = await self.collection.update_many(
            {"user_id": user_id, "is_read": False},
            {"$set": {"is_read": True, "updated_at": DateTimeHandler.get_current_datetime()},
             "$inc": {"version": 1}},
        )
        return result.modified_count
