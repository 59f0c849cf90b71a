"""SQLAlchemy models for EduPortal."""

from .enums import (
    UserRole, SubmissionStatus, RequestStatus, MessageStatus, TaskStatus,
    TaskPriority, EducationLevel, ImportStatus, NotificationCategory,
)
from .user import User, UserPreferences
from .subject import Subject, Enrollment
from .schedule import ScheduleItem, ImportedFile
from .assignment import Assignment, Submission, Grade
from .request import StudentRequest
from .document import Document
from .message import Message, Notification
from .task import Task
from .curriculum import CurriculumPlan
from .activity import ActivityLog

__all__ = [
    "User",
    "UserPreferences",
    "UserRole",
    "Subject",
    "Enrollment",
    "ScheduleItem",
    "ImportedFile",
    "ImportStatus",
    "Assignment",
    "Submission",
    "SubmissionStatus",
    "Grade",
    "StudentRequest",
    "RequestStatus",
    "Document",
    "Message",
    "MessageStatus",
    "Notification",
    "NotificationCategory",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "CurriculumPlan",
    "EducationLevel",
    "ActivityLog",
]
