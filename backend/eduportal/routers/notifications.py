"""Notification endpoints."""
import logging

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db
from ..models import Notification, User, UserRole
from ..schemas.misc import NotificationCreate, NotificationResponse
from .common import forbid, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])
user_notifications_router = APIRouter(prefix="/api/users", tags=["Notifications"])


def _for_user(db: Session, user_id: int, unread_only: bool = False) -> list[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        query = query.filter(Notification.is_read == False)  # noqa: E712
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def _owned(db: Session, notification_id: int, user: User) -> Notification:
    notification = get_or_404(db, Notification, notification_id)
    if notification.user_id != user.id:
        raise forbid("You can only manage your own notifications")
    return notification


def _ensure_self(current_user: User, user_id: int) -> None:
    if current_user.id != user_id:
        raise forbid("You can only view your own notifications")


@router.get("", response_model=list[NotificationResponse])
async def my_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return _for_user(db, current_user.id)


@router.get("/unread", response_model=list[NotificationResponse])
async def my_unread_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return _for_user(db, current_user.id, unread_only=True)


@router.get("/user/{user_id}", response_model=list[NotificationResponse])
async def user_notifications(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    _ensure_self(current_user, user_id)
    return _for_user(db, user_id)


@router.get("/unread/user/{user_id}", response_model=list[NotificationResponse])
async def user_unread_notifications(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    _ensure_self(current_user, user_id)
    return _for_user(db, user_id, unread_only=True)


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    notification_data: NotificationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    """Send a notification to any user; bypasses recipient preferences."""
    get_or_404(db, User, notification_data.user_id)
    notification = Notification(**notification_data.model_dump())
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(f"{current_user.email} notified user {notification.user_id}: {notification.title}")
    return notification


@router.patch("/read-all")
async def mark_all_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == current_user.id, Notification.is_read == False)  # noqa: E712
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return {"updated": updated}


@router.post("/{notification_id}/read", response_model=NotificationResponse)
@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    notification = _owned(db, notification_id, current_user)
    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    notification = _owned(db, notification_id, current_user)
    db.delete(notification)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@user_notifications_router.get("/{user_id}/notifications", response_model=list[NotificationResponse])
async def notifications_of_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    if current_user.id != user_id and not current_user.is_admin:
        raise forbid()
    return _for_user(db, user_id)
