"""Message and Notification models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Integer, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import MessageStatus


class Message(Base):
    """Direct chat message between two users."""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    to_user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    sent_at = Column(DateTime, server_default=func.now(), default=utcnow)
    status = Column(SQLEnum(MessageStatus, name="message_status"), nullable=False, default=MessageStatus.sent)

    sender = relationship("User", foreign_keys=[from_user_id])
    recipient = relationship("User", foreign_keys=[to_user_id])

    def __repr__(self):
        return f"<Message(id={self.id}, from={self.from_user_id}, to={self.to_user_id}, status={self.status})>"

    def to_payload(self) -> dict:
        """JSON-ready representation pushed over the chat socket."""
        return {
            "id": self.id,
            "from_user_id": self.from_user_id,
            "to_user_id": self.to_user_id,
            "content": self.content,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "status": self.status.value,
        }


class Notification(Base):
    """In-app notification shown to a single user."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    related_id = Column(Integer)
    related_type = Column(String(50))

    user = relationship("User")

    def __repr__(self):
        return f"<Notification(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
