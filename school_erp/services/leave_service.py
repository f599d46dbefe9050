import logging
import secrets
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from .base_service import BaseService
from .academic_service import get_student_profile
from .notification_service import NotificationService
from .people_service import ParentService, StudentService
from .user_service import UserService
from ..core.exceptions import NotFoundError, PermissionDenied, ValidationError
from ..models.leave import LeaveRequest, LeaveStatus, LeaveType
from ..models.user import User, Role

logger = logging.getLogger(__name__)

# pending_parent -> pending_school -> approved | rejected
ALLOWED_TRANSITIONS = {
    LeaveStatus.PENDING_PARENT: {LeaveStatus.PENDING_SCHOOL},
    LeaveStatus.PENDING_SCHOOL: {LeaveStatus.APPROVED, LeaveStatus.REJECTED},
    LeaveStatus.APPROVED: set(),
    LeaveStatus.REJECTED: set(),
}


def check_transition(current: LeaveStatus, target: LeaveStatus):
    if target not in ALLOWED_TRANSITIONS[current]:
        if current == LeaveStatus.PENDING_PARENT:
            raise ValidationError("Leave must be approved by a parent first", field="status")
        raise ValidationError(
            f"Cannot move a leave from {current.value} to {target.value}",
            field="status",
        )


def generate_gate_pass_code() -> str:
    return f"GP-{secrets.token_hex(4).upper()}"


class LeaveService(BaseService[LeaveRequest]):
    resource_name = "Leave request"

    def __init__(self, db: AsyncSession):
        super().__init__(LeaveRequest, db)
        self.notifications = NotificationService(db)

    async def apply(
        self,
        user: User,
        reason: str,
        type: LeaveType,
        start_date: date,
        end_date: date,
    ) -> LeaveRequest:
        student = await get_student_profile(self.db, user)
        if not student:
            raise PermissionDenied("Only students can apply for leave")
        if end_date < start_date:
            raise ValidationError("end_date cannot be before start_date", field="end_date")

        leave = LeaveRequest(
            school_id=student.school_id,
            student_id=student.id,
            reason=reason,
            type=type,
            start_date=start_date,
            end_date=end_date,
            status=LeaveStatus.PENDING_PARENT,
        )
        self.db.add(leave)
        await self.db.flush()

        parent_ids = await StudentService(self.db).parent_user_ids([student.id])
        self.notifications.notify_many(
            parent_ids,
            "LEAVE_REQUEST",
            f"Leave request from {user.name}",
            message=reason[:200],
            link=f"/leaves/{leave.id}",
            school_id=student.school_id,
        )
        await self.db.commit()
        await self.db.refresh(leave)
        return leave

    async def list_visible(self, user: User, school_id: Optional[UUID], status: Optional[LeaveStatus] = None) -> List[LeaveRequest]:
        stmt = select(LeaveRequest).where(LeaveRequest.is_deleted == False)
        if user.role == Role.STUDENT:
            student = await get_student_profile(self.db, user)
            stmt = stmt.where(LeaveRequest.student_id == (student.id if student else None))
        elif user.role == Role.PARENT:
            children = await ParentService(self.db).children_of_user(user)
            stmt = stmt.where(LeaveRequest.student_id.in_([c.id for c in children]))
        elif school_id is not None:
            stmt = stmt.where(LeaveRequest.school_id == school_id)
        if status is not None:
            stmt = stmt.where(LeaveRequest.status == status)
        return (await self.db.execute(stmt.order_by(LeaveRequest.created_at.desc()))).scalars().all()

    async def approve_by_parent(self, user: User, leave_id: UUID) -> LeaveRequest:
        leave = await self.get(leave_id)
        if not leave:
            raise NotFoundError(self.resource_name)
        if not await ParentService(self.db).is_parent_of(user, leave.student_id):
            raise PermissionDenied("You are not a parent of this student")
        check_transition(leave.status, LeaveStatus.PENDING_SCHOOL)

        leave.status = LeaveStatus.PENDING_SCHOOL
        leave.parent_approved_by = user.id
        leave.parent_approved_at = datetime.now(timezone.utc)

        admin_ids = await UserService(self.db).ids_by_role(leave.school_id, Role.SCHOOL_ADMIN)
        self.notifications.notify_many(
            admin_ids,
            "LEAVE_REQUEST",
            f"Leave for {leave.student.name} awaits approval",
            message=leave.reason[:200],
            link=f"/leaves/{leave.id}",
            school_id=leave.school_id,
        )
        await self.db.commit()
        await self.db.refresh(leave)
        return leave

    async def decide_by_admin(
        self,
        user: User,
        school_id: Optional[UUID],
        leave_id: UUID,
        status: LeaveStatus,
        comment: Optional[str] = None,
    ) -> LeaveRequest:
        leave = await self.get_in_school(leave_id, school_id)
        if status not in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
            raise ValidationError("status must be approved or rejected", field="status")
        check_transition(leave.status, status)

        leave.status = status
        leave.admin_approved_by = user.id
        leave.admin_approved_at = datetime.now(timezone.utc)
        leave.admin_comment = comment
        if status == LeaveStatus.APPROVED and leave.type == LeaveType.HALF_DAY:
            leave.gate_pass_code = generate_gate_pass_code()

        recipients = [leave.student.user_id]
        recipients += await StudentService(self.db).parent_user_ids([leave.student_id])
        self.notifications.notify_many(
            recipients,
            "LEAVE_REQUEST",
            f"Leave {status.value}",
            message=comment,
            link=f"/leaves/{leave.id}",
            school_id=leave.school_id,
        )
        await self.db.commit()
        await self.db.refresh(leave)
        logger.info(f"Leave {leave.id} {status.value} by {user.id}")
        return leave
