from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import get_current_user
from ..models.user import User
from ..services.notification_service import NotificationService
from ..utils.formatting import iso

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def notification_to_dict(notification) -> dict:
    return {
        "id": str(notification.id),
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "link": notification.link,
        "is_read": notification.is_read,
        "created_at": iso(notification.created_at),
    }


@router.get("")
async def list_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = NotificationService(db)
    notifications = await service.list_for_user(user.id)
    return {
        "notifications": [notification_to_dict(n) for n in notifications],
        "unread_count": await service.unread_count(user.id),
    }


@router.put("/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService(db).mark_all_read(user.id)
    return {"updated": updated}


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_read(notification_id, user.id)
    return notification_to_dict(notification)
