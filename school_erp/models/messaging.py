from sqlalchemy import Column, Text, DateTime, ForeignKey, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class Conversation(Base):
    __tablename__ = "conversations"

    school_id = Column(Uuid(as_uuid=True), ForeignKey("schools.id"), nullable=True, index=True)

    participants = relationship(
        "ConversationParticipant",
        back_populates="conversation",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ConversationParticipant(Base):
    __tablename__ = "conversation_participants"

    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    last_read_at = Column(DateTime(timezone=True))

    conversation = relationship("Conversation", back_populates="participants")
    user = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint('conversation_id', 'user_id', name='unique_participant'),
    )


class Message(Base):
    __tablename__ = "messages"

    conversation_id = Column(Uuid(as_uuid=True), ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False, index=True)

    sender = relationship("User", lazy="selectin")
