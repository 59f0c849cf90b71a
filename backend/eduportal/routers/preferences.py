"""Per-user interface and notification preferences."""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user
from ..database import get_db
from ..models import User, UserPreferences
from ..schemas.user import PreferencesBase, PreferencesResponse

router = APIRouter(prefix="/api/user-preferences", tags=["Preferences"])


def _stored(db: Session, user_id: int):
    return db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()


def _changes(prefs_data: PreferencesBase) -> dict:
    return {k: v for k, v in prefs_data.model_dump(exclude_unset=True).items() if v is not None}


@router.get("", response_model=PreferencesResponse)
async def get_preferences(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """Stored preferences, or the defaults when the user never saved any."""
    prefs = _stored(db, current_user.id)
    if prefs is None:
        return PreferencesResponse(user_id=current_user.id)
    return prefs


@router.post("", response_model=PreferencesResponse, status_code=status.HTTP_201_CREATED)
async def create_preferences(
    prefs_data: PreferencesBase,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    if _stored(db, current_user.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Preferences already exist")
    prefs = UserPreferences(user_id=current_user.id, **_changes(prefs_data))
    db.add(prefs)
    db.commit()
    db.refresh(prefs)
    return prefs


@router.put("", response_model=PreferencesResponse)
async def update_preferences(
    prefs_data: PreferencesBase,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    prefs = _stored(db, current_user.id)
    if prefs is None:
        prefs = UserPreferences(user_id=current_user.id)
        db.add(prefs)
        response.status_code = status.HTTP_201_CREATED
    for key, value in _changes(prefs_data).items():
        setattr(prefs, key, value)
    db.commit()
    db.refresh(prefs)
    return prefs
