from sqlalchemy import Column, String, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base, enum_column
import enum


class Role(enum.Enum):
    ADMIN = "admin"  # super admin, spans every school
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"
    STAFF = "staff"


class User(Base):
    __tablename__ = "users"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=True, index=True)
    email = Column(String(254), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(enum_column(Role), nullable=False, index=True)
    phone = Column(String(20))
    is_active = Column(Boolean, default=True, nullable=False)

    school = relationship("School", lazy="selectin")

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.ADMIN
