import time
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from .academic_service import get_student_profile
from .people_service import ParentService, StudentService
from ..models.notice import Notice, Newsletter, Certificate
from ..models.user import User, Role


class NoticeService(BaseService[Notice]):
    resource_name = "Notice"

    def __init__(self, db: AsyncSession):
        super().__init__(Notice, db)

    async def list_for_school(self, school_id: UUID, audience: Optional[str] = None) -> List[Notice]:
        stmt = select(Notice).where(Notice.school_id == school_id, Notice.is_deleted == False)
        if audience:
            stmt = stmt.where(Notice.audience.in_(["ALL", audience.upper()]))
        return (await self.db.execute(stmt.order_by(Notice.created_at.desc()))).scalars().all()


class NewsletterService(BaseService[Newsletter]):
    resource_name = "Newsletter"

    def __init__(self, db: AsyncSession):
        super().__init__(Newsletter, db)

    async def list_for_school(self, school_id: UUID) -> List[Newsletter]:
        stmt = select(Newsletter).where(Newsletter.school_id == school_id, Newsletter.is_deleted == False)
        return (await self.db.execute(stmt.order_by(Newsletter.published_at.desc()))).scalars().all()

    async def publish(self, school_id: UUID, author_id: UUID, data: dict) -> Newsletter:
        return await self.create({
            **data,
            "school_id": school_id,
            "author_id": author_id,
            "published_at": datetime.now(timezone.utc),
        })


def certificate_reference() -> str:
    return f"CERT-{int(time.time() * 1000)}"


class CertificateService(BaseService[Certificate]):
    resource_name = "Certificate"

    def __init__(self, db: AsyncSession):
        super().__init__(Certificate, db)

    async def list_visible(self, user: User, school_id: UUID) -> List[Certificate]:
        """Students see their own, parents their children's, staff the whole school."""
        stmt = select(Certificate).where(
            Certificate.school_id == school_id,
            Certificate.is_deleted == False,
        )
        if user.role == Role.STUDENT:
            student = await get_student_profile(self.db, user)
            stmt = stmt.where(Certificate.student_id == (student.id if student else None))
        elif user.role == Role.PARENT:
            children = await ParentService(self.db).children_of_user(user)
            stmt = stmt.where(Certificate.student_id.in_([c.id for c in children]))
        return (await self.db.execute(stmt.order_by(Certificate.issued_at.desc()))).scalars().all()

    async def issue(self, school_id: UUID, student_id: UUID, type: str, details: Optional[dict]) -> Certificate:
        await StudentService(self.db).get_in_school(student_id, school_id)
        return await self.create({
            "school_id": school_id,
            "student_id": student_id,
            "type": type,
            "reference_number": certificate_reference(),
            "issued_at": datetime.now(timezone.utc),
            "details": details or {},
        })
