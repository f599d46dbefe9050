from sqlalchemy import Column, String, Text, DateTime, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class Notice(Base):
    __tablename__ = "notices"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    audience = Column(String(20), default="ALL", nullable=False)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)


class Newsletter(Base):
    __tablename__ = "newsletters"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    cover_image = Column(String(500))
    published_at = Column(DateTime(timezone=True), nullable=False)
    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)


class Certificate(Base):
    __tablename__ = "certificates"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=False, index=True)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    reference_number = Column(String(40), unique=True, nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    details = Column(JSON, default=dict)

    student = relationship("Student", lazy="selectin")
