from sqlalchemy import Column, String, Text, Boolean, ForeignKey, Uuid
from .base import Base


class Notification(Base):
    __tablename__ = "notifications"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=True, index=True)
    type = Column(String(30), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text)
    link = Column(String(300))
    is_read = Column(Boolean, default=False, nullable=False, index=True)
