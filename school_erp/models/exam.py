from sqlalchemy import Column, String, Integer, Float, Text, JSON, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class Exam(Base):
    __tablename__ = "exams"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    term = Column(String(20))
    year = Column(Integer)


class ExamPaper(Base):
    __tablename__ = "exam_papers"

    exam_id = Column(Uuid(as_uuid=True), ForeignKey("exams.id"), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    questions = Column(JSON, default=list, nullable=False)
    duration_minutes = Column(Integer)
    total_marks = Column(Integer)
    instructions = Column(Text)
    status = Column(String(20), default="draft", nullable=False)

    __table_args__ = (
        UniqueConstraint('exam_id', 'subject_id', name='unique_paper_per_subject'),
    )


class ExamResult(Base):
    __tablename__ = "exam_results"

    exam_id = Column(Uuid(as_uuid=True), ForeignKey("exams.id"), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    score = Column(Float, nullable=False)

    exam = relationship("Exam", lazy="selectin")
    subject = relationship("Subject", lazy="selectin")
    student = relationship("Student", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('exam_id', 'subject_id', 'student_id', name='unique_result_per_student'),
    )
