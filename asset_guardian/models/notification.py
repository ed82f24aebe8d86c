# asset_guardian/models/notification.py
from enum import Enum
from typing import Optional

from asset_guardian.models.base import DocumentModel


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    APPROVAL = "approval"


class NotificationModel(DocumentModel):
    """Database model for user notifications"""
    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    is_read: bool = False
