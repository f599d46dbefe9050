from sqlalchemy import Column, String, Boolean, Date, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class Student(Base):
    __tablename__ = "students"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=True, index=True)
    admission_number = Column(String(50), index=True)
    grade = Column(String(20))
    section = Column(String(10))
    date_of_birth = Column(Date)
    address = Column(String(500))

    user = relationship("User", lazy="selectin")
    school_class = relationship("SchoolClass", lazy="selectin")

    @property
    def name(self) -> str:
        return self.user.name if self.user else ""


class Teacher(Base):
    __tablename__ = "teachers"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    qualification = Column(String(200))
    specialization = Column(String(200))

    user = relationship("User", lazy="selectin")


class Parent(Base):
    __tablename__ = "parents"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)
    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    occupation = Column(String(100))

    user = relationship("User", lazy="selectin")


class ParentStudent(Base):
    __tablename__ = "parent_students"

    parent_id = Column(Uuid(as_uuid=True), ForeignKey("parents.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    relationship_type = Column(String(30), default="guardian")
    is_primary = Column(Boolean, default=False, nullable=False)

    parent = relationship("Parent", lazy="selectin")
    student = relationship("Student", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('parent_id', 'student_id', name='unique_parent_student'),
    )
