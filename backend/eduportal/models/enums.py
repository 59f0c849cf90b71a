"""Shared enums for models, schemas and auth."""
import enum


class UserRole(str, enum.Enum):
    student = "student"
    teacher = "teacher"
    admin = "admin"
    director = "director"


class SubmissionStatus(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"
    graded = "graded"


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class MessageStatus(str, enum.Enum):
    sent = "sent"
    delivered = "delivered"
    read = "read"


class TaskStatus(str, enum.Enum):
    new = "new"
    in_progress = "in_progress"
    completed = "completed"
    on_hold = "on_hold"


class TaskPriority(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class EducationLevel(str, enum.Enum):
    """Levels of study a curriculum plan can target."""
    spo = "СПО"
    vo = "ВО"
    magistracy = "Магистратура"
    postgraduate = "Аспирантура"


class ImportStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    error = "error"


class NotificationCategory(str, enum.Enum):
    """Preference switch a notification falls under."""
    assignment = "assignment"
    grade = "grade"
    task = "task"
    system = "system"
