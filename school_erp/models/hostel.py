from sqlalchemy import Column, String, Integer, Date, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base, enum_column
import enum


class AllocationStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    VACATED = "VACATED"


class Hostel(Base):
    __tablename__ = "hostels"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    type = Column(String(20), default="MIXED", nullable=False)
    address = Column(String(500))
    warden_name = Column(String(200))
    warden_phone = Column(String(20))

    rooms = relationship(
        "HostelRoom",
        back_populates="hostel",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class HostelRoom(Base):
    __tablename__ = "hostel_rooms"

    hostel_id = Column(Uuid(as_uuid=True), ForeignKey("hostels.id"), nullable=False, index=True)
    room_number = Column(String(20), nullable=False)
    floor = Column(Integer)
    capacity = Column(Integer, nullable=False)

    hostel = relationship("Hostel", back_populates="rooms")
    allocations = relationship("HostelAllocation", back_populates="room", lazy="selectin")

    __table_args__ = (
        CheckConstraint('capacity > 0', name='check_capacity_positive'),
    )

    @property
    def active_allocations(self):
        return [a for a in self.allocations if a.status == AllocationStatus.ACTIVE]


class HostelAllocation(Base):
    __tablename__ = "hostel_allocations"

    room_id = Column(Uuid(as_uuid=True), ForeignKey("hostel_rooms.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)
    status = Column(enum_column(AllocationStatus), default=AllocationStatus.ACTIVE, nullable=False, index=True)

    room = relationship("HostelRoom", back_populates="allocations")
    student = relationship("Student", lazy="selectin")
