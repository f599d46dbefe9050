from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, CheckConstraint
from sqlalchemy.orm import relationship
from .base import Base, enum_column
import enum


class IssueStatus(enum.Enum):
    ISSUED = "ISSUED"
    RETURNED = "RETURNED"


class Book(Base):
    __tablename__ = "books"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    title = Column(String(300), nullable=False, index=True)
    author = Column(String(200))
    isbn = Column(String(20), index=True)
    category = Column(String(100))
    quantity = Column(Integer, default=1, nullable=False)
    available = Column(Integer, default=1, nullable=False)

    __table_args__ = (
        CheckConstraint('available >= 0', name='check_available_non_negative'),
    )


class BookIssue(Base):
    __tablename__ = "book_issues"

    book_id = Column(Uuid(as_uuid=True), ForeignKey("books.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    issue_date = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(DateTime(timezone=True))
    return_date = Column(DateTime(timezone=True))
    status = Column(enum_column(IssueStatus), default=IssueStatus.ISSUED, nullable=False, index=True)

    book = relationship("Book", lazy="selectin")
    student = relationship("Student", lazy="selectin")
