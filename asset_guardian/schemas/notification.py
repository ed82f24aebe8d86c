from typing import Optional

from pydantic import BaseModel

from asset_guardian.models.notification import NotificationType
from asset_guardian.schemas.base import DocumentResponse


class NotificationResponse(DocumentResponse):
    user_id: str
    title: str
    message: str
    type: NotificationType
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    is_read: bool


class UnreadCount(BaseModel):
    count: int


class MarkedRead(BaseModel):
    updated: int
