from datetime import timedelta
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError, PermissionDenied
from ..models.academic import SchoolClass, Subject, ClassSubject
from ..models.people import Teacher, Student
from ..models.user import User, Role
from ..utils.cache_decorators import cached


class ClassService(BaseService[SchoolClass]):
    resource_name = "Class"

    def __init__(self, db: AsyncSession):
        super().__init__(SchoolClass, db)

    async def list_for_school(self, school_id: Optional[UUID], class_ids: Optional[List[UUID]] = None) -> List[SchoolClass]:
        stmt = select(SchoolClass).where(SchoolClass.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(SchoolClass.school_id == school_id)
        if class_ids is not None:
            stmt = stmt.where(SchoolClass.id.in_(class_ids))
        result = await self.db.execute(stmt.order_by(SchoolClass.grade, SchoolClass.name))
        return result.scalars().all()

    async def create(self, obj_in: dict) -> SchoolClass:
        try:
            return await super().create(obj_in)
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("name", obj_in.get("name"))


class SubjectService(BaseService[Subject]):
    resource_name = "Subject"

    def __init__(self, db: AsyncSession):
        super().__init__(Subject, db)

    async def list_for_school(self, school_id: Optional[UUID]) -> List[Subject]:
        stmt = select(Subject).where(Subject.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(Subject.school_id == school_id)
        result = await self.db.execute(stmt.order_by(Subject.name))
        return result.scalars().all()


class ClassSubjectService(BaseService[ClassSubject]):
    resource_name = "Class subject"

    def __init__(self, db: AsyncSession):
        super().__init__(ClassSubject, db)

    async def get_in_school(self, id, school_id) -> ClassSubject:
        stmt = (
            select(ClassSubject)
            .join(SchoolClass, SchoolClass.id == ClassSubject.class_id)
            .where(ClassSubject.id == id, ClassSubject.is_deleted == False)
        )
        if school_id is not None:
            stmt = stmt.where(SchoolClass.school_id == school_id)
        obj = (await self.db.execute(stmt)).scalar_one_or_none()
        if not obj:
            raise NotFoundError(self.resource_name)
        return obj

    async def list_for_school(
        self,
        school_id: Optional[UUID],
        class_id: Optional[UUID] = None,
        teacher_id: Optional[UUID] = None,
    ) -> List[ClassSubject]:
        stmt = (
            select(ClassSubject)
            .join(SchoolClass, SchoolClass.id == ClassSubject.class_id)
            .where(ClassSubject.is_deleted == False, SchoolClass.is_deleted == False)
        )
        if school_id is not None:
            stmt = stmt.where(SchoolClass.school_id == school_id)
        if class_id is not None:
            stmt = stmt.where(ClassSubject.class_id == class_id)
        if teacher_id is not None:
            stmt = stmt.where(ClassSubject.teacher_id == teacher_id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def assign(self, class_id: UUID, subject_id: UUID, teacher_id: Optional[UUID], periods_per_week: int = 0) -> ClassSubject:
        """Create or update the teacher assignment for a (class, subject) pair."""
        stmt = select(ClassSubject).where(
            ClassSubject.class_id == class_id,
            ClassSubject.subject_id == subject_id,
        )
        existing = (await self.db.execute(stmt)).scalar_one_or_none()
        if existing:
            existing.teacher_id = teacher_id
            existing.periods_per_week = periods_per_week
            existing.is_deleted = False
            await self.db.commit()
            await self.db.refresh(existing)
            return existing
        return await self.create({
            "class_id": class_id,
            "subject_id": subject_id,
            "teacher_id": teacher_id,
            "periods_per_week": periods_per_week,
        })


async def get_teacher_profile(db: AsyncSession, user: User) -> Optional[Teacher]:
    stmt = select(Teacher).where(Teacher.user_id == user.id, Teacher.is_deleted == False)
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_student_profile(db: AsyncSession, user: User) -> Optional[Student]:
    stmt = select(Student).where(Student.user_id == user.id, Student.is_deleted == False)
    return (await db.execute(stmt)).scalar_one_or_none()


async def assigned_class_ids(db: AsyncSession, user: User) -> List[UUID]:
    teacher = await get_teacher_profile(db, user)
    if not teacher:
        return []
    stmt = select(ClassSubject.class_id).where(
        ClassSubject.teacher_id == teacher.id,
        ClassSubject.is_deleted == False,
    ).distinct()
    return list((await db.execute(stmt)).scalars().all())


async def is_teacher_assigned(
    db: AsyncSession,
    user: User,
    class_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
) -> bool:
    teacher = await get_teacher_profile(db, user)
    if not teacher:
        return False
    stmt = select(ClassSubject.id).where(
        ClassSubject.teacher_id == teacher.id,
        ClassSubject.is_deleted == False,
    )
    if class_id is not None:
        stmt = stmt.where(ClassSubject.class_id == class_id)
    if subject_id is not None:
        stmt = stmt.where(ClassSubject.subject_id == subject_id)
    return (await db.execute(stmt.limit(1))).first() is not None


async def ensure_class_access(
    db: AsyncSession,
    user: User,
    class_id: Optional[UUID] = None,
    subject_id: Optional[UUID] = None,
):
    """Teachers may only act on classes and subjects they are assigned to."""
    if user.role != Role.TEACHER:
        return
    if not await is_teacher_assigned(db, user, class_id, subject_id):
        raise PermissionDenied("You are not assigned to this class or subject")


def class_to_dict(school_class: SchoolClass) -> dict:
    return {
        "id": str(school_class.id),
        "school_id": str(school_class.school_id),
        "name": school_class.name,
        "grade": school_class.grade,
        "sections": school_class.sections or [],
    }


class ClassDirectory:
    """Cached, serialised class list per school."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @cached("classes", expire=timedelta(minutes=10), key_func=lambda self, school_id: f"{school_id}:all")
    async def for_school(self, school_id: UUID) -> List[dict]:
        classes = await ClassService(self.db).list_for_school(school_id)
        return [class_to_dict(c) for c in classes]
