from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func

from .base_service import BaseService
from ..core.exceptions import NotFoundError
from ..models.notification import Notification


class NotificationService(BaseService[Notification]):
    resource_name = "Notification"

    def __init__(self, db: AsyncSession):
        super().__init__(Notification, db)

    def notify(
        self,
        user_id: UUID,
        type: str,
        title: str,
        message: Optional[str] = None,
        link: Optional[str] = None,
        school_id: Optional[UUID] = None,
    ) -> Notification:
        """Stage a notification in the current unit of work; the caller commits."""
        notification = Notification(
            user_id=user_id,
            school_id=school_id,
            type=type,
            title=title,
            message=message,
            link=link,
        )
        self.db.add(notification)
        return notification

    def notify_many(
        self,
        user_ids: Iterable[UUID],
        type: str,
        title: str,
        message: Optional[str] = None,
        link: Optional[str] = None,
        school_id: Optional[UUID] = None,
    ) -> int:
        count = 0
        for user_id in dict.fromkeys(user_ids):
            self.notify(user_id, type, title, message, link, school_id)
            count += 1
        return count

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> List[Notification]:
        stmt = (
            select(Notification)
            .where(Notification.user_id == user_id, Notification.is_deleted == False)
            .order_by(Notification.created_at.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def unread_count(self, user_id: UUID) -> int:
        stmt = select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False,
            Notification.is_deleted == False,
        )
        return (await self.db.execute(stmt)).scalar()

    async def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
            Notification.is_deleted == False,
        )
        notification = (await self.db.execute(stmt)).scalar_one_or_none()
        if not notification:
            raise NotFoundError("Notification")
        notification.is_read = True
        await self.db.commit()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount
