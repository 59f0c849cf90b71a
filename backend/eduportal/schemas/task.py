"""Task and curriculum plan schemas."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import EducationLevel, TaskPriority, TaskStatus
from .common import UTCDateTime
from .user import UserSummary


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.new
    priority: TaskPriority = TaskPriority.medium
    client_id: Optional[int] = None
    executor_id: int
    due_date: Optional[UTCDateTime] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    executor_id: Optional[int] = None
    due_date: Optional[UTCDateTime] = None


class TaskStatusUpdate(BaseModel):
    status: str


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TaskPriority
    client_id: int
    executor_id: int
    due_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    client: Optional[UserSummary] = None
    executor: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class TaskDeleted(BaseModel):
    message: str
    task_id: int


class CurriculumPlanCreate(BaseModel):
    specialty_name: str = Field(..., min_length=1, max_length=255)
    specialty_code: str = Field(..., min_length=1, max_length=50)
    years_of_study: int = Field(4, ge=1, le=6)
    education_level: EducationLevel
    description: Optional[str] = None
    calendar_data: Optional[Any] = None
    curriculum_plan_data: Optional[Any] = None
    created_by: Optional[int] = None


class CurriculumPlanUpdate(BaseModel):
    specialty_name: Optional[str] = Field(None, min_length=1, max_length=255)
    specialty_code: Optional[str] = Field(None, min_length=1, max_length=50)
    years_of_study: Optional[int] = Field(None, ge=1, le=6)
    education_level: Optional[EducationLevel] = None
    description: Optional[str] = None
    calendar_data: Optional[Any] = None
    curriculum_plan_data: Optional[Any] = None


class CurriculumPlanOverride(CurriculumPlanUpdate):
    """Update sent through POST with ``{"_method": "PUT"}`` in the body."""
    method: Optional[str] = Field(None, alias="_method")

    model_config = ConfigDict(populate_by_name=True)


class CurriculumWeeks(BaseModel):
    plan_id: int
    calendar_data: Any


class CurriculumPlanResponse(BaseModel):
    id: int
    specialty_name: str
    specialty_code: str
    years_of_study: int
    education_level: EducationLevel
    description: Optional[str] = None
    calendar_data: Optional[Any] = None
    curriculum_plan_data: Optional[Any] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class CurriculumPlanDeleted(BaseModel):
    message: str
    plan_id: int
