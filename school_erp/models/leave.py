from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base, enum_column
import enum


class LeaveStatus(enum.Enum):
    PENDING_PARENT = "pending_parent"
    PENDING_SCHOOL = "pending_school"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeaveType(enum.Enum):
    FULL_DAY = "full_day"
    HALF_DAY = "half_day"


class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    type = Column(enum_column(LeaveType), default=LeaveType.FULL_DAY, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    status = Column(enum_column(LeaveStatus), default=LeaveStatus.PENDING_PARENT, nullable=False, index=True)

    parent_approved_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    parent_approved_at = Column(DateTime(timezone=True))
    admin_approved_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
    admin_approved_at = Column(DateTime(timezone=True))
    admin_comment = Column(Text)
    gate_pass_code = Column(String(20), unique=True)

    student = relationship("Student", lazy="selectin")
