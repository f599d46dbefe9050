from uuid import UUID
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..core.permissions import Permission, require_permission
from ..models.user import User
from ..services.attendance_service import AttendanceService
from ..services.exam_service import ExamResultService
from ..services.finance_service import FinanceService
from ..services.people_service import ParentService
from .exams import result_to_dict
from .finance import payment_to_dict
from .people import student_to_dict

router = APIRouter(prefix="/api/parents/children", tags=["Parent Portal"])


async def _child(db: AsyncSession, user: User, student_id: UUID):
    """One of the caller's linked children, 404 for anyone else's"""
    for child in await ParentService(db).children_of_user(user):
        if child.id == student_id:
            return child
    raise NotFoundError("Child")


@router.get("")
async def list_children(
    user: User = Depends(require_permission(Permission.CHILD_VIEW_ALL)),
    db: AsyncSession = Depends(get_db),
):
    return [student_to_dict(c) for c in await ParentService(db).children_of_user(user)]


@router.get("/{student_id}/overview")
async def child_overview(
    student_id: UUID,
    user: User = Depends(require_permission(Permission.CHILD_VIEW_ALL)),
    db: AsyncSession = Depends(get_db),
):
    child = await _child(db, user, student_id)
    attendance = await AttendanceService(db).summary_for_student(child.id)
    results = await ExamResultService(db).list_results(child.school_id, student_ids=[child.id])
    finance = FinanceService(db)
    payments = await finance.payments_for_student(child)
    return {
        "student": student_to_dict(child),
        "attendance": {k: attendance[k] for k in ("total", "present", "percentage")},
        "results": [result_to_dict(r) for r in results],
        "fees": finance.fee_summary(payments),
    }


@router.get("/{student_id}/attendance")
async def child_attendance(
    student_id: UUID,
    user: User = Depends(require_permission(Permission.CHILD_VIEW_ATTENDANCE)),
    db: AsyncSession = Depends(get_db),
):
    child = await _child(db, user, student_id)
    return await AttendanceService(db).summary_for_student(child.id)


@router.get("/{student_id}/results")
async def child_results(
    student_id: UUID,
    user: User = Depends(require_permission(Permission.CHILD_VIEW_RESULTS)),
    db: AsyncSession = Depends(get_db),
):
    child = await _child(db, user, student_id)
    results = await ExamResultService(db).list_results(child.school_id, student_ids=[child.id])
    return [result_to_dict(r) for r in results]


@router.get("/{student_id}/fees")
async def child_fees(
    student_id: UUID,
    user: User = Depends(require_permission(Permission.CHILD_VIEW_FEES)),
    db: AsyncSession = Depends(get_db),
):
    child = await _child(db, user, student_id)
    finance = FinanceService(db)
    payments = await finance.payments_for_student(child)
    return {
        **finance.fee_summary(payments),
        "payments": [payment_to_dict(p) for p in payments],
    }
