"""Activity log helpers."""
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import ActivityLog

logger = logging.getLogger(__name__)

USER_CREATED = "user_created"
ASSIGNMENT_CREATED = "assignment_created"
SCHEDULE_IMPORTED = "schedule_imported"
REQUEST_RESOLVED = "request_resolved"


def log_activity(
    db: Session,
    type: str,
    description: str,
    user_id: Optional[int] = None,
    related_id: Optional[int] = None,
    related_type: Optional[str] = None,
) -> ActivityLog:
    """Add an activity entry to the session; the caller commits."""
    entry = ActivityLog(
        user_id=user_id,
        type=type,
        description=description,
        related_id=related_id,
        related_type=related_type,
    )
    db.add(entry)
    logger.info(f"Activity [{type}] {description}")
    return entry
