"""Assignment, Submission and Grade models."""

from sqlalchemy import (
    Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Integer, Float, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import SubmissionStatus


class Assignment(Base):
    """Assignment model."""
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    due_date = Column(DateTime, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)

    # Relationships
    subject = relationship("Subject", back_populates="assignments")
    created_by_user = relationship("User")
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Assignment(id={self.id}, title='{self.title}')>"

    @property
    def submission_count(self):
        """Get count of submissions for this assignment."""
        return len(self.submissions)

    def is_overdue(self, now=None) -> bool:
        return (now or utcnow()) > self.due_date


class Submission(Base):
    """A student's answer to an assignment."""
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("assignment_id", "student_id", name="uq_submission_assignment_student"),)

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    submitted_at = Column(DateTime, server_default=func.now(), default=utcnow)
    content = Column(Text)
    file_url = Column(String(500))
    status = Column(SQLEnum(SubmissionStatus, name="submission_status"), nullable=False,
                    default=SubmissionStatus.not_started)
    grade = Column(Integer)
    feedback = Column(Text)

    # Relationships
    assignment = relationship("Assignment", back_populates="submissions")
    student = relationship("User")

    def __repr__(self):
        return f"<Submission(id={self.id}, assignment_id={self.assignment_id}, student_id={self.student_id})>"

    @property
    def is_graded(self):
        return self.status == SubmissionStatus.graded


class Grade(Base):
    """Score recorded for a student in a subject."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="SET NULL"), nullable=True)
    score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False, default=100)
    comments = Column(Text)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime, server_default=func.now(), default=utcnow, onupdate=utcnow)

    student = relationship("User")
    subject = relationship("Subject")
    assignment = relationship("Assignment")

    def __repr__(self):
        return f"<Grade(id={self.id}, student_id={self.student_id}, score={self.score}/{self.max_score})>"

    @property
    def percentage(self) -> float:
        if not self.max_score:
            return 0.0
        return round(self.score / self.max_score * 100, 2)
