import logging
from datetime import date
from typing import Dict, List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from .academic_service import ClassService, ensure_class_access, get_student_profile
from .people_service import StudentService
from .school_service import SchoolService
from ..core.exceptions import NotFoundError, PermissionDenied, ValidationError
from ..models.attendance import AttendanceSession, AttendanceRecord, AttendanceStatus
from ..models.user import User
from ..utils.geo import check_geofence

logger = logging.getLogger(__name__)

STATUS_ALIASES = {
    "p": AttendanceStatus.PRESENT,
    "present": AttendanceStatus.PRESENT,
    "a": AttendanceStatus.ABSENT,
    "absent": AttendanceStatus.ABSENT,
}


def normalize_status(value: str) -> AttendanceStatus:
    status = STATUS_ALIASES.get(str(value or "").strip().lower())
    if status is None:
        raise ValidationError(f"Invalid attendance status: {value}", field="status")
    return status


class AttendanceService(BaseService[AttendanceSession]):
    resource_name = "Attendance session"

    def __init__(self, db: AsyncSession):
        super().__init__(AttendanceSession, db)

    async def check_location(self, school_id: UUID, latitude: float, longitude: float) -> dict:
        school = await SchoolService(self.db).get(school_id)
        if not school:
            raise NotFoundError("School")
        return check_geofence(school, latitude, longitude)

    async def mark(
        self,
        user: User,
        school_id: UUID,
        class_id: UUID,
        on_date: date,
        records: List[dict],
        grade: Optional[str] = None,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
    ) -> AttendanceSession:
        """Record the roll call for a class; marking the same day again replaces it."""
        await ClassService(self.db).get_in_school(class_id, school_id)
        await ensure_class_access(self.db, user, class_id=class_id)

        if latitude is not None and longitude is not None:
            fence = await self.check_location(school_id, latitude, longitude)
            if not fence["allowed"]:
                logger.warning(
                    f"Attendance for class {class_id} rejected: {fence['distance_meters']}m from school"
                )
                raise PermissionDenied("You must be within the school premises to mark attendance")

        statuses: Dict[UUID, AttendanceStatus] = {}
        for record in records:
            statuses[record["student_id"]] = normalize_status(record["status"])

        students = {s.id: s for s in await StudentService(self.db).get_by_ids(statuses.keys())}
        for student_id in statuses:
            student = students.get(student_id)
            if not student or student.class_id != class_id:
                raise ValidationError(f"Student {student_id} is not in this class", field="records")
            if grade and student.grade and str(student.grade) != str(grade):
                raise ValidationError(f"Student {student_id} is not in grade {grade}", field="records")

        stmt = select(AttendanceSession).where(
            AttendanceSession.class_id == class_id,
            AttendanceSession.date == on_date,
        )
        session = (await self.db.execute(stmt)).scalar_one_or_none()
        roll = [AttendanceRecord(student_id=student_id, status=status) for student_id, status in statuses.items()]
        if session:
            # old rows must be gone before the new ones hit unique_record_per_session
            session.records.clear()
            session.is_deleted = False
            session.marked_by = user.id
            await self.db.flush()
            session.records.extend(roll)
        else:
            session = AttendanceSession(
                school_id=school_id,
                class_id=class_id,
                date=on_date,
                marked_by=user.id,
                records=roll,
            )
            self.db.add(session)

        await self.db.commit()
        await self.db.refresh(session)
        return session

    async def get_for_day(self, school_id: UUID, class_id: UUID, on_date: date) -> Optional[AttendanceSession]:
        stmt = select(AttendanceSession).where(
            AttendanceSession.school_id == school_id,
            AttendanceSession.class_id == class_id,
            AttendanceSession.date == on_date,
            AttendanceSession.is_deleted == False,
        )
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def update_record(self, user: User, school_id: UUID, record_id: UUID, status: str) -> AttendanceRecord:
        stmt = (
            select(AttendanceRecord, AttendanceSession)
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .where(AttendanceRecord.id == record_id, AttendanceSession.school_id == school_id)
        )
        row = (await self.db.execute(stmt)).first()
        if not row:
            raise NotFoundError("Attendance record")
        record, session = row
        await ensure_class_access(self.db, user, class_id=session.class_id)
        record.status = normalize_status(status)
        await self.db.commit()
        await self.db.refresh(record)
        return record

    async def delete_session(self, user: User, school_id: UUID, session_id: UUID):
        session = await self.get_in_school(session_id, school_id)
        await ensure_class_access(self.db, user, class_id=session.class_id)
        await self.hard_delete(session)

    async def records_for_student(self, student_id: UUID) -> List[dict]:
        stmt = (
            select(AttendanceRecord, AttendanceSession)
            .join(AttendanceSession, AttendanceSession.id == AttendanceRecord.session_id)
            .where(
                AttendanceRecord.student_id == student_id,
                AttendanceSession.is_deleted == False,
            )
            .order_by(AttendanceSession.date.desc())
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": str(record.id),
                "date": session.date.isoformat(),
                "class_id": str(session.class_id),
                "status": record.status.value,
            }
            for record, session in rows
        ]

    async def summary_for_student(self, student_id: UUID) -> dict:
        records = await self.records_for_student(student_id)
        present = sum(1 for r in records if r["status"] == AttendanceStatus.PRESENT.value)
        percentage = round(present / len(records) * 100) if records else 0
        return {
            "records": records,
            "total": len(records),
            "present": present,
            "percentage": percentage,
        }

    async def self_summary(self, user: User) -> dict:
        student = await get_student_profile(self.db, user)
        if not student:
            raise NotFoundError("Student profile")
        return await self.summary_for_student(student.id)
