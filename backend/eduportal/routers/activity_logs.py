"""Read-only activity log views for admins and directors."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..auth.service import require_roles
from ..database import get_db
from ..models import ActivityLog, User
from ..schemas.misc import ActivityLogResponse
from .common import OVERSIGHT_ROLES

router = APIRouter(prefix="/api/activity-logs", tags=["Activity"])

oversight = require_roles(*OVERSIGHT_ROLES)


def _recent(query, limit: int) -> list[ActivityLog]:
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()


@router.get("", response_model=list[ActivityLogResponse])
async def recent_activity(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(oversight),
):
    return _recent(db.query(ActivityLog), limit)


@router.get("/type/{activity_type}", response_model=list[ActivityLogResponse])
async def activity_by_type(
    activity_type: str,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(oversight),
):
    return _recent(db.query(ActivityLog).filter(ActivityLog.type == activity_type), limit)


@router.get("/user/{user_id}", response_model=list[ActivityLogResponse])
async def activity_by_user(
    user_id: int,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(oversight),
):
    return _recent(db.query(ActivityLog).filter(ActivityLog.user_id == user_id), limit)
