"""ScheduleItem and ImportedFile models."""

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, Integer, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import ImportStatus

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


class ScheduleItem(Base):
    """Weekly recurring class slot. Times are stored as HH:MM strings."""
    __tablename__ = "schedule_items"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_schedule_day_of_week"),
    )

    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0 = Sunday
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    room_number = Column(String(50))
    teacher_name = Column(String(255))
    imported_file_id = Column(Integer, ForeignKey("imported_files.id", ondelete="SET NULL"), nullable=True)

    subject = relationship("Subject", back_populates="schedule_items")
    imported_file = relationship("ImportedFile", back_populates="schedule_items")

    def __repr__(self):
        return f"<ScheduleItem(id={self.id}, subject_id={self.subject_id}, day={self.day_of_week})>"

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


class ImportedFile(Base):
    """Record of an uploaded schedule import."""
    __tablename__ = "imported_files"

    id = Column(Integer, primary_key=True, index=True)
    original_name = Column(String(255), nullable=False)
    stored_name = Column(String(255), nullable=False)
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    mime_type = Column(String(100))
    import_type = Column(String(20), nullable=False, default="csv")
    status = Column(SQLEnum(ImportStatus, name="import_status"), nullable=False, default=ImportStatus.pending)
    items_count = Column(Integer, default=0)
    success_count = Column(Integer, default=0)
    error_count = Column(Integer, default=0)
    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)

    uploader = relationship("User")
    schedule_items = relationship("ScheduleItem", back_populates="imported_file")

    def __repr__(self):
        return f"<ImportedFile(id={self.id}, original_name='{self.original_name}', status={self.status})>"
