"""
Notification API routes.
"""
from typing import List

from fastapi import APIRouter, Depends

from asset_guardian.api.pagination import Pagination
from asset_guardian.dependencies.permissions import has_permission
from asset_guardian.domains.notifications.service import notification_service
from asset_guardian.schemas.notification import MarkedRead, NotificationResponse, UnreadCount

router = APIRouter()


@router.get("/", response_model=List[NotificationResponse])
async def read_notifications(
        page: Pagination = Depends(),
        unread_only: bool = False,
        current_user: dict = Depends(has_permission("notifications:read"))
):
    return await notification_service.get_notifications(current_user, unread_only, page.skip, page.limit)


@router.get("/unread-count", response_model=UnreadCount)
async def read_unread_count(current_user: dict = Depends(has_permission("notifications:read"))):
    return {"count": await notification_service.get_unread_count(current_user)}


@router.post("/read-all", response_model=MarkedRead)
async def mark_all_notifications_read(current_user: dict = Depends(has_permission("notifications:write"))):
    return {"updated": await notification_service.mark_all_as_read(current_user)}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
        notification_id: str,
        current_user: dict = Depends(has_permission("notifications:write"))
):
    return await notification_service.mark_as_read(notification_id, current_user)
