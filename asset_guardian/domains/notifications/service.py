"""
Notification service for business logic.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional

from asset_guardian.core.exceptions import ForbiddenError
from asset_guardian.domains.notifications.repository import NotificationRepository
from asset_guardian.models.notification import NotificationModel, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for user notifications. Writes made from workflow transitions
    take the transition's session so they commit or roll back with it.
    """

    def __init__(self, notification_repo: Optional[NotificationRepository] = None):
        """
        Initialize with notification repository.

        Args:
            notification_repo: Optional notification repository instance
        """
        self.notification_repo = notification_repo or NotificationRepository()

    async def notify(
            self,
            user_id: Optional[str],
            title: str,
            message: str,
            notification_type: NotificationType = NotificationType.INFO,
            entity_type: Optional[str] = None,
            entity_id: Optional[str] = None,
            session=None
    ) -> Optional[Dict[str, Any]]:
        """
        Create a notification for one user.

        Args:
            user_id: Recipient; nothing is written when None
            title: Short title
            message: Notification body
            notification_type: Notification type
            entity_type: Related entity type
            entity_id: Related entity ID
            session: Optional client session

        Returns:
            Created notification document or None
        """
        if not user_id:
            return None

        notification = NotificationModel(
            user_id=str(user_id),
            title=title,
            message=message,
            type=notification_type,
            related_entity_type=entity_type,
            related_entity_id=str(entity_id) if entity_id else None,
        ).to_document()
        return await self.notification_repo.create(notification, session=session)

    async def notify_many(
            self,
            user_ids: Iterable[Optional[str]],
            title: str,
            message: str,
            notification_type: NotificationType = NotificationType.INFO,
            entity_type: Optional[str] = None,
            entity_id: Optional[str] = None,
            session=None
    ) -> List[Dict[str, Any]]:
        created = []
        for user_id in dict.fromkeys(u for u in user_ids if u):
            created.append(await self.notify(
                user_id, title, message, notification_type, entity_type, entity_id, session=session
            ))
        return created

    async def get_notifications(self, user: Dict[str, Any], unread_only: bool = False,
                                skip: int = 0, limit: int = 100) -> List[Dict[str, Any]]:
        return await self.notification_repo.find_by_user(str(user["_id"]), unread_only, skip, limit)

    async def get_unread_count(self, user: Dict[str, Any]) -> int:
        return await self.notification_repo.count_unread(str(user["_id"]))

    async def mark_as_read(self, notification_id: str, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mark one of the user's notifications as read.

        Args:
            notification_id: Notification ID
            user: Current user

        Returns:
            Updated notification document

        Raises:
            NotFoundError: If the notification does not exist
            ForbiddenError: If it belongs to another user
        """
        notification = await self.notification_repo.get_by_id(notification_id)
        if notification["user_id"] != str(user["_id"]):
            raise ForbiddenError("You can only update your own notifications")

        if notification.get("is_read"):
            return notification
        return await self.notification_repo.update(notification_id, {"is_read": True})

    async def mark_all_as_read(self, user: Dict[str, Any]) -> int:
        updated = await self.notification_repo.mark_all_read(str(user["_id"]))
        logger.info(f"Marked {updated} notifications read for user {user['_id']}")
        return updated


# Create global instance
notification_service = NotificationService()
