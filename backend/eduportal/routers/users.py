"""User management endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db
from ..models import User, UserRole
from ..schemas.user import UserCreate, UserResponse, UserSummary, UserUpdate
from ..services import NotificationService, log_activity
from ..services.activity import USER_CREATED
from .common import OVERSIGHT_ROLES, clean_updates, ensure_self_or_oversight, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


def _email_taken(db: Session, email: str, exclude_id: int = None) -> bool:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@router.get("", response_model=list[UserResponse])
async def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(*OVERSIGHT_ROLES)),
):
    """All users, newest first."""
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


@router.get("/chat", response_model=list[UserSummary])
async def list_chat_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Everyone the current user can start a conversation with."""
    return (
        db.query(User)
        .filter(User.id != current_user.id, User.is_active == True)  # noqa: E712
        .order_by(User.first_name, User.last_name)
        .all()
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_oversight(current_user, user_id)
    return get_or_404(db, User, user_id)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    if _email_taken(db, user_data.email):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = User(
        email=user_data.email,
        first_name=user_data.first_name,
        last_name=user_data.last_name,
        role=user_data.role,
    )
    user.set_password(user_data.password)
    db.add(user)
    db.flush()

    NotificationService(db).notify_admins(
        "New User Registered",
        f"{user.full_name} has joined as {user.role.value}",
        exclude=[current_user.id],
        related_id=user.id,
        related_type="user",
    )
    log_activity(
        db, USER_CREATED, f"{current_user.full_name} created {user.role.value} {user.full_name}",
        user_id=current_user.id, related_id=user.id, related_type="user",
    )
    db.commit()
    db.refresh(user)
    logger.info(f"Admin {current_user.email} created user {user.email}")
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    user = get_or_404(db, User, user_id)
    changes = clean_updates(user, user_data.model_dump(exclude_unset=True))
    if not changes:
        return user

    if "email" in changes and _email_taken(db, changes["email"], exclude_id=user.id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    password = changes.pop("password", None)
    if password:
        user.set_password(password)
    for key, value in changes.items():
        setattr(user, key, value)

    notifications = NotificationService(db)
    if user.id != current_user.id:
        notifications.notify(
            user.id, "Profile Updated", "Your profile was updated by an administrator",
            related_id=user.id, related_type="user",
        )
    notifications.notify_admins(
        "User Updated", f"{current_user.full_name} updated {user.full_name}",
        exclude=[current_user.id, user.id], related_id=user.id, related_type="user",
    )
    db.commit()
    db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    user = get_or_404(db, User, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")
    db.delete(user)
    db.commit()
    logger.info(f"Admin {current_user.email} deleted user {user_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
