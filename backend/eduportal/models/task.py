"""Task model."""

from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SQLEnum, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import TaskStatus, TaskPriority

# Position of each value in listings
STATUS_ORDER = {
    TaskStatus.new: 0,
    TaskStatus.in_progress: 1,
    TaskStatus.on_hold: 2,
    TaskStatus.completed: 3,
}
PRIORITY_ORDER = {
    TaskPriority.high: 0,
    TaskPriority.medium: 1,
    TaskPriority.low: 2,
}
OPEN_STATUSES = (TaskStatus.new, TaskStatus.in_progress, TaskStatus.on_hold)


class Task(Base):
    """Work item requested by a client and carried out by an executor."""
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    status = Column(SQLEnum(TaskStatus, name="task_status"), nullable=False, default=TaskStatus.new)
    priority = Column(SQLEnum(TaskPriority, name="task_priority"), nullable=False, default=TaskPriority.medium)
    client_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    executor_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    due_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime, server_default=func.now(), default=utcnow, onupdate=utcnow)

    client = relationship("User", foreign_keys=[client_id])
    executor = relationship("User", foreign_keys=[executor_id])

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}', status={self.status})>"

    def involves(self, user_id: int) -> bool:
        return user_id in (self.client_id, self.executor_id)

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    @property
    def sort_key(self):
        """Status, then priority, then newest first."""
        created = self.created_at.timestamp() if self.created_at else 0
        return (STATUS_ORDER[self.status], PRIORITY_ORDER[self.priority], -created)
