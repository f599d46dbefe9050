from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.leave import LeaveStatus, LeaveType
from ..models.user import User
from ..utils.formatting import iso, sid
from ..services.leave_service import LeaveService

router = APIRouter(prefix="/api/leaves", tags=["Leaves"])


class LeaveCreate(BaseModel):
    reason: str = Field(..., min_length=1, max_length=2000)
    type: LeaveType = LeaveType.FULL_DAY
    start_date: date
    end_date: date


class AdminDecision(BaseModel):
    status: LeaveStatus
    admin_comment: Optional[str] = None


def leave_to_dict(leave) -> dict:
    return {
        "id": str(leave.id),
        "student_id": str(leave.student_id),
        "student_name": leave.student.name if leave.student else None,
        "reason": leave.reason,
        "type": leave.type.value,
        "start_date": iso(leave.start_date),
        "end_date": iso(leave.end_date),
        "status": leave.status.value,
        "parent_approved_by": sid(leave.parent_approved_by),
        "parent_approved_at": iso(leave.parent_approved_at),
        "admin_approved_by": sid(leave.admin_approved_by),
        "admin_approved_at": iso(leave.admin_approved_at),
        "admin_comment": leave.admin_comment,
        "gate_pass_code": leave.gate_pass_code,
        "created_at": iso(leave.created_at),
    }


@router.post("", status_code=201)
async def apply_for_leave(
    payload: LeaveCreate,
    user: User = Depends(require_permission(Permission.LEAVE_APPLY)),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService(db).apply(
        user, payload.reason, payload.type, payload.start_date, payload.end_date
    )
    return leave_to_dict(leave)


@router.get("")
async def list_leaves(
    status: Optional[LeaveStatus] = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    school_id = None if user.is_super_admin else user.school_id
    leaves = await LeaveService(db).list_visible(user, school_id, status)
    return [leave_to_dict(l) for l in leaves]


@router.post("/{leave_id}/approve-parent")
async def approve_by_parent(
    leave_id: UUID,
    user: User = Depends(require_permission(Permission.LEAVE_APPROVE_PARENT)),
    db: AsyncSession = Depends(get_db),
):
    leave = await LeaveService(db).approve_by_parent(user, leave_id)
    return leave_to_dict(leave)


@router.post("/{leave_id}/approve-admin")
async def decide_by_admin(
    leave_id: UUID,
    payload: AdminDecision,
    user: User = Depends(require_permission(Permission.LEAVE_APPROVE_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Final school decision; half-day approvals get a gate pass code"""
    school_id = None if user.is_super_admin else resolve_school_id(user)
    leave = await LeaveService(db).decide_by_admin(user, school_id, leave_id, payload.status, payload.admin_comment)
    return leave_to_dict(leave)
