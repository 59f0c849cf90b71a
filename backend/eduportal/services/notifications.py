"""Creation of in-app notifications for domain events."""
import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models import Notification, NotificationCategory, User, UserPreferences, UserRole

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Adds notifications to the current session, honouring each recipient's
    preferences. Callers own the transaction and commit afterwards.
    """

    def __init__(self, db: Session):
        self.db = db

    def notify(
        self,
        user_id: int,
        title: str,
        content: str,
        category: NotificationCategory = NotificationCategory.system,
        related_id: Optional[int] = None,
        related_type: Optional[str] = None,
    ) -> Optional[Notification]:
        prefs = self.db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()
        if prefs is not None and not prefs.allows(category.value):
            logger.debug(f"Notification '{title}' suppressed for user {user_id} by preferences")
            return None

        notification = Notification(
            user_id=user_id,
            title=title,
            content=content,
            related_id=related_id,
            related_type=related_type,
        )
        self.db.add(notification)
        return notification

    def notify_many(self, user_ids: Iterable[int], title: str, content: str, **kwargs) -> list[Notification]:
        created = []
        for user_id in dict.fromkeys(user_ids):
            notification = self.notify(user_id, title, content, **kwargs)
            if notification is not None:
                created.append(notification)
        return created

    def notify_admins(self, title: str, content: str, exclude: Iterable[int] = (), **kwargs) -> list[Notification]:
        """Notify every admin except the ids in ``exclude``."""
        excluded = set(exclude)
        admin_ids = [
            user_id for (user_id,) in self.db.query(User.id).filter(User.role == UserRole.admin).all()
            if user_id not in excluded
        ]
        created = self.notify_many(admin_ids, title, content, **kwargs)
        logger.info(f"Notified {len(created)} admin(s): {title}")
        return created
