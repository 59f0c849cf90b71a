"""Curriculum plan model."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Integer, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import EducationLevel


class CurriculumPlan(Base):
    """Study plan of a specialty with its academic calendar."""
    __tablename__ = "curriculum_plans"

    id = Column(Integer, primary_key=True, index=True)
    specialty_name = Column(String(255), nullable=False)
    specialty_code = Column(String(50), nullable=False)
    years_of_study = Column(Integer, nullable=False, default=4)
    education_level = Column(
        SQLEnum(EducationLevel, name="education_level", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    description = Column(Text)
    calendar_data = Column(JSON, default=dict)
    curriculum_plan_data = Column(JSON, default=dict)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime, server_default=func.now(), default=utcnow, onupdate=utcnow)

    author = relationship("User")

    def __repr__(self):
        return f"<CurriculumPlan(id={self.id}, code='{self.specialty_code}', level={self.education_level})>"
