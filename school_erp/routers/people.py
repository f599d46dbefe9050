from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import PermissionDenied
from ..core.permissions import (
    Permission,
    get_current_user,
    has_permission,
    require_permission,
    resolve_school_id,
)
from ..models.user import User
from ..schemas.people_schemas import (
    ParentCreate,
    ParentLink,
    StudentCreate,
    StudentUpdate,
    TeacherCreate,
)
from ..services.people_service import ParentService, StudentService, TeacherService
from ..utils.cache_decorators import invalidate_school_stats
from ..utils.formatting import iso, sid
from ..utils.pagination import PaginationParams, Paginator

router = APIRouter(prefix="/api", tags=["Students, Teachers & Parents"])


def student_to_dict(student) -> dict:
    user = student.user
    return {
        "id": str(student.id),
        "user_id": str(student.user_id),
        "school_id": str(student.school_id),
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "is_active": user.is_active,
        "class_id": sid(student.class_id),
        "class_name": student.school_class.name if student.school_class else None,
        "admission_number": student.admission_number,
        "grade": student.grade,
        "section": student.section,
        "date_of_birth": iso(student.date_of_birth),
        "address": student.address,
        "created_at": iso(student.created_at),
    }


def teacher_to_dict(teacher) -> dict:
    return {
        "id": str(teacher.id),
        "user_id": str(teacher.user_id),
        "name": teacher.user.name,
        "email": teacher.user.email,
        "phone": teacher.user.phone,
        "qualification": teacher.qualification,
        "specialization": teacher.specialization,
    }


def parent_to_dict(parent, children=None) -> dict:
    data = {
        "id": str(parent.id),
        "user_id": str(parent.user_id),
        "name": parent.user.name,
        "email": parent.user.email,
        "phone": parent.user.phone,
        "occupation": parent.occupation,
    }
    if children is not None:
        data["children"] = [
            {"id": str(c.id), "name": c.name, "class_id": sid(c.class_id)}
            for c in children
        ]
    return data


def _school_scope(user: User) -> Optional[UUID]:
    return None if user.is_super_admin else user.school_id


# Students

@router.get("/students")
async def list_students(
    pagination: PaginationParams = Depends(Paginator.get_pagination_params),
    class_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get paginated students with filtering"""
    if not (has_permission(user.role, Permission.STUDENT_VIEW) or has_permission(user.role, Permission.STUDENT_MANAGE)):
        raise PermissionDenied()
    scope = school_id if user.is_super_admin else user.school_id
    result = await StudentService(db).list_paginated(
        scope,
        page=pagination.page,
        size=pagination.size,
        class_id=class_id,
        search=search,
    )
    return Paginator.create_response(
        [student_to_dict(s) for s in result["items"]],
        result["page"],
        result["size"],
        result["total"],
    )


@router.post("/students", status_code=201)
async def create_student(
    payload: StudentCreate,
    user: User = Depends(require_permission(Permission.STUDENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Create new student together with the login account"""
    school_id = resolve_school_id(user, payload.school_id)
    student = await StudentService(db).create_student(school_id, payload.model_dump(exclude={"school_id"}))
    await invalidate_school_stats(school_id)
    return student_to_dict(student)


@router.get("/students/{student_id}")
async def get_student(
    student_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    student = await StudentService(db).get_in_school(student_id, _school_scope(user))
    allowed = (
        has_permission(user.role, Permission.STUDENT_VIEW)
        or has_permission(user.role, Permission.STUDENT_MANAGE)
        or student.user_id == user.id
        or await ParentService(db).is_parent_of(user, student.id)
    )
    if not allowed:
        raise PermissionDenied()
    return student_to_dict(student)


@router.put("/students/{student_id}")
async def update_student(
    student_id: UUID,
    payload: StudentUpdate,
    user: User = Depends(require_permission(Permission.STUDENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = StudentService(db)
    student = await service.get_in_school(student_id, _school_scope(user))
    student = await service.update_student(student, payload.model_dump(exclude_unset=True))
    return student_to_dict(student)


@router.delete("/students/{student_id}")
async def delete_student(
    student_id: UUID,
    user: User = Depends(require_permission(Permission.STUDENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete the student and disable the account"""
    service = StudentService(db)
    student = await service.get_in_school(student_id, _school_scope(user))
    await service.remove_student(student)
    await invalidate_school_stats(student.school_id)
    return {"message": "Student deleted successfully"}


# Teachers

@router.get("/teachers")
async def list_teachers(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    teachers = await TeacherService(db).list_for_school(_school_scope(user))
    return [teacher_to_dict(t) for t in teachers]


@router.post("/teachers", status_code=201)
async def create_teacher(
    payload: TeacherCreate,
    user: User = Depends(require_permission(Permission.TEACHER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    school_id = resolve_school_id(user, payload.school_id)
    teacher = await TeacherService(db).create_teacher(school_id, payload.model_dump(exclude={"school_id"}))
    await invalidate_school_stats(school_id)
    return teacher_to_dict(teacher)


@router.delete("/teachers/{teacher_id}")
async def delete_teacher(
    teacher_id: UUID,
    user: User = Depends(require_permission(Permission.TEACHER_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = TeacherService(db)
    teacher = await service.get_in_school(teacher_id, _school_scope(user))
    await service.remove_teacher(teacher)
    await invalidate_school_stats(teacher.school_id)
    return {"message": "Teacher deleted successfully"}


# Parents

@router.get("/parents")
async def list_parents(
    user: User = Depends(require_permission(Permission.PARENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ParentService(db)
    parents = await service.list_for_school(_school_scope(user))
    return [parent_to_dict(p, await service.children_of(p)) for p in parents]


@router.post("/parents", status_code=201)
async def create_parent(
    payload: ParentCreate,
    user: User = Depends(require_permission(Permission.PARENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    school_id = resolve_school_id(user, payload.school_id)
    service = ParentService(db)
    parent = await service.create_parent(school_id, payload.model_dump(exclude={"school_id"}))
    await invalidate_school_stats(school_id)
    return parent_to_dict(parent, await service.children_of(parent))


@router.post("/parents/{parent_id}/students", status_code=201)
async def link_child(
    parent_id: UUID,
    payload: ParentLink,
    user: User = Depends(require_permission(Permission.PARENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """Link a student to a parent"""
    service = ParentService(db)
    parent = await service.get_in_school(parent_id, _school_scope(user))
    link = await service.link_child(parent, payload.student_id, payload.relationship_type, payload.is_primary)
    return {
        "id": str(link.id),
        "parent_id": str(link.parent_id),
        "student_id": str(link.student_id),
        "relationship_type": link.relationship_type,
        "is_primary": link.is_primary,
    }


@router.delete("/parents/{parent_id}/students/{student_id}")
async def unlink_child(
    parent_id: UUID,
    student_id: UUID,
    user: User = Depends(require_permission(Permission.PARENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    service = ParentService(db)
    parent = await service.get_in_school(parent_id, _school_scope(user))
    await service.unlink_child(parent, student_id)
    return {"message": "Student unlinked successfully"}
