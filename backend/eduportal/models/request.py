"""Student request model."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import RequestStatus


class StudentRequest(Base):
    """Administrative request filed by a student (certificate, leave, ...)."""
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(SQLEnum(RequestStatus, name="request_status"), nullable=False, default=RequestStatus.pending)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    resolved_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    resolved_at = Column(DateTime, nullable=True)
    resolution = Column(Text)

    student = relationship("User", foreign_keys=[student_id])
    resolver = relationship("User", foreign_keys=[resolved_by])

    def __repr__(self):
        return f"<StudentRequest(id={self.id}, type='{self.type}', status={self.status})>"

    @property
    def is_resolved(self) -> bool:
        return self.status != RequestStatus.pending
