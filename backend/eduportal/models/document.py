"""Document model."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow


class Document(Base):
    """File issued to a user (certificate, transcript, order, ...)."""
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False)
    file_url = Column(String(500))
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    owner = relationship("User", foreign_keys=[user_id])
    author = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Document(id={self.id}, title='{self.title}', type='{self.type}')>"
