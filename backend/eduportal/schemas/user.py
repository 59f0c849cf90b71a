"""User and preference schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, computed_field, field_validator

from ..auth.models import check_password_strength
from ..models import UserRole


class UserSummary(BaseModel):
    """Compact user shown inside other resources."""
    id: int
    email: str
    first_name: str
    last_name: str
    full_name: str
    role: UserRole

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def name(self) -> str:
        """Display name."""
        return self.full_name


class UserResponse(UserSummary):
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: UserRole = UserRole.student

    @field_validator('password')
    @classmethod
    def password_complexity(cls, v: str) -> str:
        return check_password_strength(v)


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None

    @field_validator('password')
    @classmethod
    def password_complexity(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return check_password_strength(v)


class PreferencesBase(BaseModel):
    theme: Optional[str] = Field(None, pattern="^(light|dark|system)$")
    language: Optional[str] = Field(None, min_length=2, max_length=10)
    notifications_enabled: Optional[bool] = None
    assignment_notifications: Optional[bool] = None
    grade_notifications: Optional[bool] = None
    task_notifications: Optional[bool] = None
    system_notifications: Optional[bool] = None
    sound_notifications: Optional[bool] = None


class PreferencesResponse(BaseModel):
    id: Optional[int] = None
    user_id: int
    theme: str = "light"
    language: str = "en"
    notifications_enabled: bool = True
    assignment_notifications: bool = True
    grade_notifications: bool = True
    task_notifications: bool = True
    system_notifications: bool = True
    sound_notifications: bool = True

    model_config = ConfigDict(from_attributes=True)
