from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from .academic_service import ClassService, SubjectService, ensure_class_access
from .notification_service import NotificationService
from .people_service import StudentService
from ..core.exceptions import NotFoundError
from ..models.learning import LearningContent, ContentKind
from ..models.user import User


class LearningContentService(BaseService[LearningContent]):
    resource_name = "Content"

    def __init__(self, db: AsyncSession, kind: ContentKind):
        super().__init__(LearningContent, db)
        self.kind = kind

    async def list_for_subject(self, school_id: UUID, subject_id: UUID, class_id: Optional[UUID] = None) -> List[LearningContent]:
        stmt = select(LearningContent).where(
            LearningContent.school_id == school_id,
            LearningContent.kind == self.kind,
            LearningContent.subject_id == subject_id,
            LearningContent.is_deleted == False,
        )
        if class_id is not None:
            stmt = stmt.where(LearningContent.class_id == class_id)
        result = await self.db.execute(stmt.order_by(LearningContent.created_at.desc()))
        return result.scalars().all()

    async def get_in_school(self, id, school_id) -> LearningContent:
        item = await super().get_in_school(id, school_id)
        if item.kind != self.kind:
            raise NotFoundError(self.resource_name)
        return item

    async def create_content(self, user: User, school_id: UUID, data: dict) -> LearningContent:
        await SubjectService(self.db).get_in_school(data["subject_id"], school_id)
        if data.get("class_id"):
            await ClassService(self.db).get_in_school(data["class_id"], school_id)
        await ensure_class_access(self.db, user, class_id=data.get("class_id"), subject_id=data["subject_id"])

        item = LearningContent(school_id=school_id, kind=self.kind, created_by=user.id, **data)
        self.db.add(item)
        await self.db.flush()

        if self.kind == ContentKind.HOMEWORK and item.class_id:
            students = await StudentService(self.db).list_in_class(item.class_id)
            student_ids = [s.id for s in students]
            recipients = [s.user_id for s in students]
            recipients += await StudentService(self.db).parent_user_ids(student_ids)
            NotificationService(self.db).notify_many(
                recipients,
                "HOMEWORK",
                f"New homework: {item.title}",
                message=(item.content or "")[:200] or None,
                link=f"/elearning/homework/{item.id}",
                school_id=school_id,
            )

        await self.db.commit()
        await self.db.refresh(item)
        return item

    async def update_content(self, user: User, item: LearningContent, data: dict) -> LearningContent:
        await ensure_class_access(self.db, user, class_id=item.class_id, subject_id=item.subject_id)
        return await self.update(item, data)

    async def delete_content(self, user: User, item: LearningContent):
        await ensure_class_access(self.db, user, class_id=item.class_id, subject_id=item.subject_id)
        await self.soft_delete(item)
