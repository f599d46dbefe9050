from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid
from .base import Base, enum_column
import enum


class ContentKind(enum.Enum):
    CLASS_NOTE = "class-notes"
    HOMEWORK = "homework"
    CLASS_WORK = "class-work"
    SYLLABUS = "syllabus"


class LearningContent(Base):
    """Notes, homework, class work and syllabus entries attached to a subject."""
    __tablename__ = "learning_contents"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    kind = Column(enum_column(ContentKind), nullable=False, index=True)
    subject_id = Column(Uuid(as_uuid=True), ForeignKey("subjects.id"), nullable=False, index=True)
    class_id = Column(Uuid(as_uuid=True), ForeignKey("classes.id"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text)
    attachment_url = Column(String(500))
    due_date = Column(DateTime(timezone=True))
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)
