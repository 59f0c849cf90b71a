"""Helpers shared by the API routers."""
from typing import Type, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from ..models import User, UserRole

ModelT = TypeVar("ModelT")

# Roles with read access to everyone's records
OVERSIGHT_ROLES = (UserRole.admin, UserRole.director)


def get_or_404(db: Session, model: Type[ModelT], object_id: int, name: str = None) -> ModelT:
    instance = db.get(model, object_id)
    if instance is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{name or model.__name__} not found"
        )
    return instance


def forbid(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def ensure_self_or_staff(current_user: User, user_id: int) -> None:
    """Students may only look at their own records."""
    if current_user.is_student and current_user.id != user_id:
        raise forbid()


def ensure_self_or_oversight(current_user: User, user_id: int) -> None:
    if current_user.id != user_id and current_user.role not in OVERSIGHT_ROLES:
        raise forbid()


def clean_updates(instance, data: dict, clearable=None) -> dict:
    """Drop ``None`` values for fields that cannot be cleared.

    By default a field may be cleared when its column is nullable.
    """
    if clearable is None:
        clearable = {column.name for column in instance.__table__.columns if column.nullable}
    return {key: value for key, value in data.items() if value is not None or key in clearable}


def apply_updates(instance, data: dict, clearable=None) -> None:
    for key, value in clean_updates(instance, data, clearable).items():
        setattr(instance, key, value)
