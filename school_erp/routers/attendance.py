from datetime import date
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import PermissionDenied
from ..core.permissions import Permission, get_current_user, require_permission, resolve_school_id
from ..models.user import User
from ..services.academic_service import ClassService, ensure_class_access
from ..services.attendance_service import AttendanceService
from ..services.school_service import SchoolService
from ..utils.formatting import iso, sid

router = APIRouter(prefix="/api/attendance", tags=["Attendance"])


class AttendanceEntry(BaseModel):
    student_id: UUID
    status: str = Field(..., description="p/present or a/absent")


class AttendanceMark(BaseModel):
    class_id: UUID
    date: date
    records: List[AttendanceEntry] = Field(..., min_length=1)
    grade: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @model_validator(mode='after')
    def validate_location(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self


class AttendanceRecordUpdate(BaseModel):
    status: str


class GeofenceCheck(BaseModel):
    class_id: UUID
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


def session_to_dict(session) -> dict:
    return {
        "id": str(session.id),
        "class_id": str(session.class_id),
        "date": iso(session.date),
        "marked_by": sid(session.marked_by),
        "records": [
            {
                "id": str(r.id),
                "student_id": str(r.student_id),
                "student_name": r.student.name if r.student else None,
                "status": r.status.value,
            }
            for r in session.records
        ],
    }


@router.post("")
async def mark_attendance(
    payload: AttendanceMark,
    user: User = Depends(require_permission(Permission.ATTENDANCE_MANAGE_CLASS)),
    db: AsyncSession = Depends(get_db),
):
    """Mark (or re-mark) a class roll call for one day"""
    session = await AttendanceService(db).mark(
        user,
        resolve_school_id(user),
        payload.class_id,
        payload.date,
        [r.model_dump() for r in payload.records],
        grade=payload.grade,
        latitude=payload.latitude,
        longitude=payload.longitude,
    )
    return {"message": "Attendance saved successfully", "session": session_to_dict(session)}


@router.get("")
async def get_attendance(
    class_id: UUID = Query(...),
    on_date: date = Query(..., alias="date"),
    user: User = Depends(require_permission(Permission.ATTENDANCE_MANAGE_CLASS)),
    db: AsyncSession = Depends(get_db),
):
    school_id = resolve_school_id(user)
    await ClassService(db).get_in_school(class_id, school_id)
    await ensure_class_access(db, user, class_id=class_id)
    session = await AttendanceService(db).get_for_day(school_id, class_id, on_date)
    if not session:
        return {"class_id": str(class_id), "date": on_date.isoformat(), "records": []}
    return session_to_dict(session)


@router.get("/self")
async def my_attendance(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The calling student's records and attendance percentage"""
    return await AttendanceService(db).self_summary(user)


@router.post("/geofence-check")
async def geofence_check(
    payload: GeofenceCheck,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Whether a position is inside the geofence of the class's school"""
    school = await SchoolService(db).get_for_class(payload.class_id)
    if not user.is_super_admin and user.school_id != school.id:
        raise PermissionDenied()
    return await AttendanceService(db).check_location(school.id, payload.latitude, payload.longitude)


@router.put("/{record_id}")
async def update_attendance_record(
    record_id: UUID,
    payload: AttendanceRecordUpdate,
    user: User = Depends(require_permission(Permission.ATTENDANCE_MANAGE_CLASS)),
    db: AsyncSession = Depends(get_db),
):
    record = await AttendanceService(db).update_record(user, resolve_school_id(user), record_id, payload.status)
    return {"id": str(record.id), "student_id": str(record.student_id), "status": record.status.value}


@router.delete("/{session_id}")
async def delete_attendance_session(
    session_id: UUID,
    user: User = Depends(require_permission(Permission.ATTENDANCE_MANAGE_CLASS)),
    db: AsyncSession = Depends(get_db),
):
    await AttendanceService(db).delete_session(user, resolve_school_id(user), session_id)
    return {"message": "Attendance deleted successfully"}
