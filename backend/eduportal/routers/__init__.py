"""API routers, in the order they are mounted on the application."""
from ..auth.router import router as auth_router
from . import (
    activity_logs, assignments, curriculum, documents, messages, notifications,
    preferences, requests, schedule, subjects, tasks, users,
)

api_routers = [
    auth_router,
    users.router,
    subjects.router,
    subjects.enrollments_router,
    schedule.router,
    schedule.template_router,
    schedule.imported_files_router,
    assignments.router,
    assignments.submissions_router,
    assignments.grades_router,
    requests.router,
    documents.router,
    messages.router,
    messages.ws_router,
    notifications.router,
    notifications.user_notifications_router,
    tasks.router,
    tasks.user_tasks_router,
    curriculum.router,
    preferences.router,
    activity_logs.router,
]

__all__ = ["api_routers"]
