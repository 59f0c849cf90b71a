"""Domain services shared by the routers."""
from .notifications import NotificationService
from .activity import log_activity
from .chat import ChatConnectionManager, manager as chat_manager
from .storage import FileStorage, FileStorageError, FileTooLargeError, get_storage
from .schedule_import import ScheduleImporter, ScheduleImportError

__all__ = [
    "NotificationService",
    "log_activity",
    "ChatConnectionManager",
    "chat_manager",
    "FileStorage",
    "FileStorageError",
    "FileTooLargeError",
    "get_storage",
    "ScheduleImporter",
    "ScheduleImportError",
]
