from sqlalchemy import Column, Date, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base, enum_column
import enum


class AttendanceStatus(enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"


class AttendanceSession(Base):
    """One roll call per class per day."""
    __tablename__ = "attendance_sessions"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    marked_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    records = relationship(
        "AttendanceRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint('class_id', 'date', name='unique_session_per_class_day'),
    )


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"

    session_id = Column(Uuid(as_uuid=True), ForeignKey("attendance_sessions.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    status = Column(enum_column(AttendanceStatus), nullable=False)

    session = relationship("AttendanceSession", back_populates="records")
    student = relationship("Student", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('session_id', 'student_id', name='unique_record_per_session'),
    )
