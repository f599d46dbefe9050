from typing import Iterable, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_

from .base_service import BaseService
from .user_service import UserService
from ..core.exceptions import NotFoundError, ValidationError
from ..models.academic import SchoolClass
from ..models.people import Student, Teacher, Parent, ParentStudent
from ..models.user import User, Role

_USER_FIELDS = ("name", "phone", "is_active")


class StudentService(BaseService[Student]):
    resource_name = "Student"

    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def list_paginated(
        self,
        school_id: Optional[UUID],
        page: int = 1,
        size: int = 20,
        class_id: Optional[UUID] = None,
        search: Optional[str] = None,
    ):
        stmt = select(Student).join(User, User.id == Student.user_id).where(Student.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(Student.school_id == school_id)
        if class_id is not None:
            stmt = stmt.where(Student.class_id == class_id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(or_(
                func.lower(User.name).like(pattern),
                func.lower(User.email).like(pattern),
                func.lower(Student.admission_number).like(pattern),
            ))

        return await self.paginate(stmt.order_by(User.name), page, size)

    async def list_in_class(self, class_id: UUID) -> List[Student]:
        stmt = select(Student).where(Student.class_id == class_id, Student.is_deleted == False)
        return (await self.db.execute(stmt)).scalars().all()

    async def list_for_school(self, school_id: Optional[UUID], class_id: Optional[UUID] = None) -> List[Student]:
        stmt = select(Student).where(Student.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(Student.school_id == school_id)
        if class_id is not None:
            stmt = stmt.where(Student.class_id == class_id)
        return (await self.db.execute(stmt)).scalars().all()

    async def get_by_ids(self, student_ids: Iterable[UUID]) -> List[Student]:
        ids = list(student_ids)
        if not ids:
            return []
        stmt = select(Student).where(Student.id.in_(ids), Student.is_deleted == False)
        return (await self.db.execute(stmt)).scalars().all()

    async def _check_class(self, school_id: UUID, class_id: Optional[UUID]):
        if class_id is None:
            return
        stmt = select(SchoolClass.id).where(
            SchoolClass.id == class_id,
            SchoolClass.school_id == school_id,
            SchoolClass.is_deleted == False,
        )
        if (await self.db.execute(stmt)).first() is None:
            raise ValidationError("Class does not belong to this school", field="class_id")

    async def create_student(self, school_id: UUID, data: dict) -> Student:
        """Create the login account and the student profile together."""
        await self._check_class(school_id, data.get("class_id"))
        user = await UserService(self.db).build_user(
            email=data["email"],
            password=data["password"],
            name=data["name"],
            role=Role.STUDENT,
            school_id=school_id,
            phone=data.get("phone"),
        )
        student = Student(
            user_id=user.id,
            school_id=school_id,
            class_id=data.get("class_id"),
            admission_number=data.get("admission_number"),
            grade=data.get("grade"),
            section=data.get("section"),
            date_of_birth=data.get("date_of_birth"),
            address=data.get("address"),
        )
        self.db.add(student)
        await self.db.commit()
        await self.db.refresh(student)
        return student

    async def update_student(self, student: Student, data: dict) -> Student:
        if "class_id" in data:
            await self._check_class(student.school_id, data["class_id"])
        for key, value in data.items():
            if key in _USER_FIELDS:
                setattr(student.user, key, value)
            elif hasattr(Student, key):
                setattr(student, key, value)
        await self.db.commit()
        await self.db.refresh(student)
        return student

    async def remove_student(self, student: Student):
        student.is_deleted = True
        student.user.is_active = False
        await self.db.commit()

    async def parent_user_ids(self, student_ids: Iterable[UUID]) -> List[UUID]:
        ids = list(student_ids)
        if not ids:
            return []
        stmt = (
            select(Parent.user_id)
            .join(ParentStudent, ParentStudent.parent_id == Parent.id)
            .where(
                ParentStudent.student_id.in_(ids),
                ParentStudent.is_deleted == False,
                Parent.is_deleted == False,
            )
            .distinct()
        )
        return list((await self.db.execute(stmt)).scalars().all())


class TeacherService(BaseService[Teacher]):
    resource_name = "Teacher"

    def __init__(self, db: AsyncSession):
        super().__init__(Teacher, db)

    async def list_for_school(self, school_id: Optional[UUID]) -> List[Teacher]:
        stmt = select(Teacher).where(Teacher.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(Teacher.school_id == school_id)
        return (await self.db.execute(stmt)).scalars().all()

    async def create_teacher(self, school_id: UUID, data: dict) -> Teacher:
        user = await UserService(self.db).build_user(
            email=data["email"],
            password=data["password"],
            name=data["name"],
            role=Role.TEACHER,
            school_id=school_id,
            phone=data.get("phone"),
        )
        teacher = Teacher(
            user_id=user.id,
            school_id=school_id,
            qualification=data.get("qualification"),
            specialization=data.get("specialization"),
        )
        self.db.add(teacher)
        await self.db.commit()
        await self.db.refresh(teacher)
        return teacher

    async def remove_teacher(self, teacher: Teacher):
        teacher.is_deleted = True
        teacher.user.is_active = False
        await self.db.commit()


class ParentService(BaseService[Parent]):
    resource_name = "Parent"

    def __init__(self, db: AsyncSession):
        super().__init__(Parent, db)

    async def list_for_school(self, school_id: Optional[UUID]) -> List[Parent]:
        stmt = select(Parent).where(Parent.is_deleted == False)
        if school_id is not None:
            stmt = stmt.where(Parent.school_id == school_id)
        return (await self.db.execute(stmt)).scalars().all()

    async def get_by_user(self, user: User) -> Optional[Parent]:
        stmt = select(Parent).where(Parent.user_id == user.id, Parent.is_deleted == False)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def create_parent(self, school_id: UUID, data: dict) -> Parent:
        user = await UserService(self.db).build_user(
            email=data["email"],
            password=data["password"],
            name=data["name"],
            role=Role.PARENT,
            school_id=school_id,
            phone=data.get("phone"),
        )
        parent = Parent(user_id=user.id, school_id=school_id, occupation=data.get("occupation"))
        self.db.add(parent)
        await self.db.flush()
        for student_id in data.get("student_ids") or []:
            await self._stage_link(parent, student_id, "guardian", False)
        await self.db.commit()
        await self.db.refresh(parent)
        return parent

    async def _stage_link(self, parent: Parent, student_id: UUID, relationship_type: str, is_primary: bool) -> ParentStudent:
        student = await StudentService(self.db).get_in_school(student_id, parent.school_id)
        stmt = select(ParentStudent).where(
            ParentStudent.parent_id == parent.id,
            ParentStudent.student_id == student.id,
        )
        link = (await self.db.execute(stmt)).scalar_one_or_none()
        if link:
            link.is_deleted = False
            link.relationship_type = relationship_type
            link.is_primary = is_primary
        else:
            link = ParentStudent(
                parent_id=parent.id,
                student_id=student.id,
                relationship_type=relationship_type,
                is_primary=is_primary,
            )
            self.db.add(link)
        return link

    async def link_child(self, parent: Parent, student_id: UUID, relationship_type: str = "guardian", is_primary: bool = False) -> ParentStudent:
        link = await self._stage_link(parent, student_id, relationship_type, is_primary)
        await self.db.commit()
        await self.db.refresh(link)
        return link

    async def unlink_child(self, parent: Parent, student_id: UUID):
        stmt = select(ParentStudent).where(
            ParentStudent.parent_id == parent.id,
            ParentStudent.student_id == student_id,
            ParentStudent.is_deleted == False,
        )
        link = (await self.db.execute(stmt)).scalar_one_or_none()
        if not link:
            raise NotFoundError("Parent link")
        link.is_deleted = True
        await self.db.commit()

    async def children_of(self, parent: Parent) -> List[Student]:
        stmt = (
            select(Student)
            .join(ParentStudent, ParentStudent.student_id == Student.id)
            .where(
                ParentStudent.parent_id == parent.id,
                ParentStudent.is_deleted == False,
                Student.is_deleted == False,
            )
        )
        return (await self.db.execute(stmt)).scalars().all()

    async def children_of_user(self, user: User) -> List[Student]:
        parent = await self.get_by_user(user)
        if not parent:
            return []
        return await self.children_of(parent)

    async def is_parent_of(self, user: User, student_id: UUID) -> bool:
        return any(child.id == student_id for child in await self.children_of_user(user))
