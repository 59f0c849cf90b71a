"""Subject and Enrollment models."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow


class Subject(Base):
    """A course taught by one teacher."""
    __tablename__ = "subjects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    short_name = Column(String(50))
    description = Column(Text)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    room_number = Column(String(50))
    color = Column(String(20))
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)

    # Relationships
    teacher = relationship("User", back_populates="taught_subjects")
    enrollments = relationship("Enrollment", back_populates="subject", cascade="all, delete-orphan")
    schedule_items = relationship("ScheduleItem", back_populates="subject", cascade="all, delete-orphan")
    assignments = relationship("Assignment", back_populates="subject", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Subject(id={self.id}, name='{self.name}')>"

    @property
    def student_count(self) -> int:
        return len(self.enrollments)

    @property
    def teacher_name(self):
        return self.teacher.full_name if self.teacher else None


class Enrollment(Base):
    """Membership of a student in a subject."""
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("student_id", "subject_id", name="uq_enrollment_student_subject"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)

    student = relationship("User", back_populates="enrollments")
    subject = relationship("Subject", back_populates="enrollments")

    def __repr__(self):
        return f"<Enrollment(student_id={self.student_id}, subject_id={self.subject_id})>"
