"""Subject, enrollment and schedule schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import ImportStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class SubjectBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    teacher_id: Optional[int] = None
    room_number: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    short_name: Optional[str] = Field(None, max_length=50)
    description: Optional[str] = None
    teacher_id: Optional[int] = None
    room_number: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=20)


class SubjectResponse(SubjectBase):
    id: int
    teacher_name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EnrollmentCreate(BaseModel):
    student_id: int
    subject_id: int


class EnrollmentResponse(EnrollmentCreate):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduleItemBase(BaseModel):
    subject_id: int
    day_of_week: int = Field(..., ge=0, le=6)
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    room_number: Optional[str] = Field(None, max_length=50)
    teacher_name: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def check_time_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class ScheduleItemCreate(ScheduleItemBase):
    pass


class ScheduleItemUpdate(BaseModel):
    subject_id: Optional[int] = None
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    room_number: Optional[str] = Field(None, max_length=50)
    teacher_name: Optional[str] = Field(None, max_length=255)


class ScheduleItemResponse(BaseModel):
    id: int
    subject_id: int
    day_of_week: int
    start_time: str
    end_time: str
    room_number: Optional[str] = None
    teacher_name: Optional[str] = None
    imported_file_id: Optional[int] = None
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ImportedFileResponse(BaseModel):
    id: int
    original_name: str
    stored_name: str
    file_size: int
    mime_type: Optional[str] = None
    import_type: str
    status: ImportStatus
    items_count: int
    success_count: int
    error_count: int
    uploaded_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ImportRowError(BaseModel):
    row: int
    error: str


class ImportResult(BaseModel):
    total: int
    success: int
    failed: int
    errors: list[ImportRowError] = []


class ImportResponse(BaseModel):
    message: str
    imported_file_id: Optional[int] = None
    result: ImportResult
