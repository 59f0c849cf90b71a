"""Activity log model."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow


class ActivityLog(Base):
    """Audit trail entry shown on the admin dashboard."""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    related_id = Column(Integer)
    related_type = Column(String(50))
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)

    user = relationship("User")

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, type='{self.type}', user_id={self.user_id})>"
