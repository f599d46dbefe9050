from sqlalchemy import Column, String, Integer, ForeignKey, JSON, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    grade = Column(String(20))
    sections = Column(JSON, default=list, nullable=False)

    __table_args__ = (
        UniqueConstraint('school_id', 'name', name='unique_class_name_per_school'),
    )


class Subject(Base):
    __tablename__ = "subjects"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    code = Column(String(20))


class ClassSubject(Base):
    """Assignment of a teacher to teach a subject in a class."""
    __tablename__ = "class_subjects"

    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    teacher_id = Column(Uuid(as_uuid=True), ForeignKey("teachers.id"), nullable=True, index=True)
    periods_per_week = Column(Integer, default=0)

    school_class = relationship("SchoolClass", lazy="selectin")
    subject = relationship("Subject", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('class_id', 'subject_id', name='unique_subject_per_class'),
    )
