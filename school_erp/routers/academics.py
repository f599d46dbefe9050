from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User, Role
from ..services.academic_service import (
    ClassDirectory,
    ClassService,
    ClassSubjectService,
    SubjectService,
    assigned_class_ids,
    class_to_dict,
    get_student_profile,
    get_teacher_profile,
)
from ..services.people_service import ParentService, TeacherService
from ..utils.cache_decorators import invalidate_school_classes, invalidate_school_stats
from ..utils.formatting import sid

router = APIRouter(prefix="/api", tags=["Classes & Subjects"])


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    grade: Optional[str] = None
    sections: List[str] = []
    school_id: Optional[UUID] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    grade: Optional[str] = None
    sections: Optional[List[str]] = None


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: Optional[str] = None
    school_id: Optional[UUID] = None


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = None


class ClassSubjectCreate(BaseModel):
    class_id: UUID
    subject_id: UUID
    teacher_id: Optional[UUID] = None
    periods_per_week: int = Field(0, ge=0)


class ClassSubjectUpdate(BaseModel):
    teacher_id: Optional[UUID] = None
    periods_per_week: Optional[int] = Field(None, ge=0)


def subject_to_dict(subject) -> dict:
    return {"id": str(subject.id), "name": subject.name, "code": subject.code}


def class_subject_to_dict(cs) -> dict:
    return {
        "id": str(cs.id),
        "class_id": str(cs.class_id),
        "class_name": cs.school_class.name if cs.school_class else None,
        "subject_id": str(cs.subject_id),
        "subject_name": cs.subject.name if cs.subject else None,
        "teacher_id": sid(cs.teacher_id),
        "periods_per_week": cs.periods_per_week,
    }


# Classes

@router.get("/classes")
async def list_classes(
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Classes visible to the caller"""
    scope = resolve_school_id(user, school_id)
    classes = await ClassDirectory(db).for_school(scope)

    if user.role == Role.TEACHER:
        allowed = {str(c) for c in await assigned_class_ids(db, user)}
        classes = [c for c in classes if c["id"] in allowed]
    elif user.role == Role.STUDENT:
        student = await get_student_profile(db, user)
        own = str(student.class_id) if student and student.class_id else None
        classes = [c for c in classes if c["id"] == own]
    elif user.role == Role.PARENT:
        children = await ParentService(db).children_of_user(user)
        allowed = {str(c.class_id) for c in children if c.class_id}
        classes = [c for c in classes if c["id"] in allowed]
    return classes


@router.post("/classes", status_code=201)
async def create_class(
    payload: ClassCreate,
    user: User = Depends(require_permission(Permission.CLASS_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    school_id = resolve_school_id(user, payload.school_id)
    data = payload.model_dump(exclude={"school_id"})
    school_class = await ClassService(db).create({**data, "school_id": school_id})
    await invalidate_school_classes(school_id)
    await invalidate_school_stats(school_id)
    return class_to_dict(school_class)


@router.put("/classes/{class_id}")
async def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    user: User = Depends(require_permission(Permission.CLASS_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ClassService(db)
    school_class = await service.get_in_school(class_id, None if user.is_super_admin else user.school_id)
    school_class = await service.update(school_class, payload.model_dump(exclude_unset=True))
    await invalidate_school_classes(school_class.school_id)
    return class_to_dict(school_class)


@router.delete("/classes/{class_id}")
async def delete_class(
    class_id: UUID,
    user: User = Depends(require_permission(Permission.CLASS_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ClassService(db)
    school_class = await service.get_in_school(class_id, None if user.is_super_admin else user.school_id)
    await service.soft_delete(school_class)
    await invalidate_school_classes(school_class.school_id)
    await invalidate_school_stats(school_class.school_id)
    return {"message": "Class deleted successfully"}


@router.get("/teacher/classes")
async def my_classes(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Class and subject assignments of the calling teacher"""
    teacher = await get_teacher_profile(db, user)
    if not teacher:
        return []
    assignments = await ClassSubjectService(db).list_for_school(user.school_id, teacher_id=teacher.id)
    return [class_subject_to_dict(cs) for cs in assignments]


# Subjects

@router.get("/subjects")
async def list_subjects(
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    scope = resolve_school_id(user, school_id)
    return [subject_to_dict(s) for s in await SubjectService(db).list_for_school(scope)]


@router.post("/subjects", status_code=201)
async def create_subject(
    payload: SubjectCreate,
    user: User = Depends(require_permission(Permission.SUBJECT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    school_id = resolve_school_id(user, payload.school_id)
    subject = await SubjectService(db).create({**payload.model_dump(exclude={"school_id"}), "school_id": school_id})
    return subject_to_dict(subject)


@router.put("/subjects/{subject_id}")
async def update_subject(
    subject_id: UUID,
    payload: SubjectUpdate,
    user: User = Depends(require_permission(Permission.SUBJECT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = SubjectService(db)
    subject = await service.get_in_school(subject_id, None if user.is_super_admin else user.school_id)
    return subject_to_dict(await service.update(subject, payload.model_dump(exclude_unset=True)))


@router.delete("/subjects/{subject_id}")
async def delete_subject(
    subject_id: UUID,
    user: User = Depends(require_permission(Permission.SUBJECT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = SubjectService(db)
    subject = await service.get_in_school(subject_id, None if user.is_super_admin else user.school_id)
    await service.soft_delete(subject)
    return {"message": "Subject deleted successfully"}


# Teacher assignments

@router.get("/class-subjects")
async def list_class_subjects(
    class_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    scope = resolve_school_id(user)
    assignments = await ClassSubjectService(db).list_for_school(scope, class_id=class_id)
    return [class_subject_to_dict(cs) for cs in assignments]


@router.post("/class-subjects", status_code=201)
async def assign_class_subject(
    payload: ClassSubjectCreate,
    user: User = Depends(require_permission(Permission.TEACHER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Assign (or reassign) the teacher for a subject in a class"""
    school_id = resolve_school_id(user)
    await ClassService(db).get_in_school(payload.class_id, school_id)
    await SubjectService(db).get_in_school(payload.subject_id, school_id)
    if payload.teacher_id:
        await TeacherService(db).get_in_school(payload.teacher_id, school_id)
    cs = await ClassSubjectService(db).assign(
        payload.class_id, payload.subject_id, payload.teacher_id, payload.periods_per_week
    )
    return class_subject_to_dict(cs)


@router.put("/class-subjects/{class_subject_id}")
async def update_class_subject(
    class_subject_id: UUID,
    payload: ClassSubjectUpdate,
    user: User = Depends(require_permission(Permission.TEACHER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    school_id = resolve_school_id(user)
    service = ClassSubjectService(db)
    cs = await service.get_in_school(class_subject_id, school_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("teacher_id"):
        await TeacherService(db).get_in_school(data["teacher_id"], school_id)
    return class_subject_to_dict(await service.update(cs, data))


@router.delete("/class-subjects/{class_subject_id}")
async def delete_class_subject(
    class_subject_id: UUID,
    user: User = Depends(require_permission(Permission.TEACHER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ClassSubjectService(db)
    cs = await service.get_in_school(class_subject_id, resolve_school_id(user))
    await service.soft_delete(cs)
    return {"message": "Assignment removed successfully"}
