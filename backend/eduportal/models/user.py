"""User and UserPreferences models."""

import bcrypt
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum, Integer, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base, utcnow
from .enums import UserRole


class User(Base):
    """Portal account for every role."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    role = Column(SQLEnum(UserRole, name="user_role"), nullable=False, default=UserRole.student)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    locked_until = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)

    # Relationships
    preferences = relationship(
        "UserPreferences", back_populates="user", uselist=False, passive_deletes=True
    )
    enrollments = relationship("Enrollment", back_populates="student", passive_deletes=True)
    taught_subjects = relationship("Subject", back_populates="teacher")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"

    def set_password(self, password: str) -> None:
        """Hash and set the user's password."""
        salt = bcrypt.gensalt()
        self.hashed_password = bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')

    def verify_password(self, password: str) -> bool:
        """Verify the provided password against the stored hash."""
        return bcrypt.checkpw(password.encode('utf-8'), self.hashed_password.encode('utf-8'))

    def is_locked(self) -> bool:
        """Check if the user account is locked."""
        return bool(self.locked_until and self.locked_until > utcnow())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.student

    @property
    def is_teacher(self) -> bool:
        return self.role == UserRole.teacher

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def is_director(self) -> bool:
        return self.role == UserRole.director

    @property
    def is_staff(self) -> bool:
        """Anyone who is not a student."""
        return self.role != UserRole.student


class UserPreferences(Base):
    """Per-user interface and notification settings."""
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    theme = Column(String(20), nullable=False, default="light")
    language = Column(String(10), nullable=False, default="en")
    notifications_enabled = Column(Boolean, nullable=False, default=True)
    assignment_notifications = Column(Boolean, nullable=False, default=True)
    grade_notifications = Column(Boolean, nullable=False, default=True)
    task_notifications = Column(Boolean, nullable=False, default=True)
    system_notifications = Column(Boolean, nullable=False, default=True)
    sound_notifications = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now(), default=utcnow)
    updated_at = Column(DateTime, server_default=func.now(), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="preferences")

    def __repr__(self):
        return f"<UserPreferences(user_id={self.user_id}, theme='{self.theme}')>"

    def allows(self, category: str) -> bool:
        """Whether a notification of the given category may be stored."""
        if not self.notifications_enabled:
            return False
        return bool(getattr(self, f"{category}_notifications", True))
