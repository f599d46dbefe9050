from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError, ValidationError
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User
from ..services.user_service import UserService
from ..utils.formatting import user_summary
from ..utils.json_store import DEPARTMENTS, DepartmentStore, get_department_store

router = APIRouter(prefix="/api/departments", tags=["Departments"])


class DepartmentStaffUpdate(BaseModel):
    user_ids: List[UUID]


def _check_department(name: str) -> str:
    department = name.lower()
    if department not in DEPARTMENTS:
        raise NotFoundError("Department")
    return department


@router.get("")
async def list_departments(
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    store: DepartmentStore = Depends(get_department_store),
):
    """Known departments with their staff counts, plus the caller's own memberships"""
    school = resolve_school_id(user, school_id)
    departments = []
    for name in DEPARTMENTS:
        departments.append({"name": name, "staff_count": len(await store.get_staff(name, school))})
    return {
        "departments": departments,
        "mine": await store.departments_of(school, user.id),
    }


@router.get("/{name}/staff")
async def department_staff(
    name: str,
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(require_permission(Permission.DEPARTMENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
    store: DepartmentStore = Depends(get_department_store),
):
    department = _check_department(name)
    school = resolve_school_id(user, school_id)
    users = UserService(db)
    staff = []
    for user_id in await store.get_staff(department, school):
        member = await users.get(UUID(user_id))
        if member:
            staff.append(user_summary(member))
    return {"department": department, "staff": staff}


@router.post("/{name}/staff")
async def set_department_staff(
    name: str,
    payload: DepartmentStaffUpdate,
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(require_permission(Permission.DEPARTMENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
    store: DepartmentStore = Depends(get_department_store),
):
    """Replace the staff list of a department"""
    department = _check_department(name)
    school = resolve_school_id(user, school_id)
    users = UserService(db)
    for user_id in payload.user_ids:
        member = await users.get(user_id)
        if not member or member.school_id != school:
            raise ValidationError(f"User {user_id} does not belong to this school", field="user_ids")
    saved = await store.set_staff(department, school, [str(u) for u in payload.user_ids])
    return {"department": department, "user_ids": saved}
