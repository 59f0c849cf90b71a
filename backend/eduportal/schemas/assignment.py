"""Assignment, submission and grade schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import SubmissionStatus
from .common import UTCDateTime
from .subject import SubjectResponse


class AssignmentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    subject_id: int
    due_date: UTCDateTime


class AssignmentCreate(AssignmentBase):
    pass


class AssignmentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    subject_id: Optional[int] = None
    due_date: Optional[UTCDateTime] = None


class AssignmentResponse(AssignmentBase):
    id: int
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubmissionResponse(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    submitted_at: Optional[datetime] = None
    content: Optional[str] = None
    file_url: Optional[str] = None
    status: SubmissionStatus
    grade: Optional[int] = None
    feedback: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class StudentAssignmentResponse(AssignmentResponse):
    """Assignment as a student sees it, with their own submission."""
    subject_name: Optional[str] = None
    submission: Optional[SubmissionResponse] = None


class TeacherAssignmentResponse(AssignmentResponse):
    """Assignment with everything a teacher reviews."""
    subject: Optional[SubjectResponse] = None
    submissions: list[SubmissionResponse] = []
    student_count: int = 0


class SubmissionGrade(BaseModel):
    grade: int = Field(..., ge=0, le=100)
    feedback: Optional[str] = None


class GradeBase(BaseModel):
    score: float = Field(..., ge=0)
    max_score: float = Field(100, gt=0)
    comments: Optional[str] = None

    @model_validator(mode="after")
    def check_score_range(self):
        if self.score > self.max_score:
            raise ValueError("score cannot exceed max_score")
        return self


class GradeCreate(GradeBase):
    student_id: int
    subject_id: int
    assignment_id: Optional[int] = None


class GradeUpdate(BaseModel):
    score: Optional[float] = Field(None, ge=0)
    max_score: Optional[float] = Field(None, gt=0)
    comments: Optional[str] = None


class GradeResponse(GradeBase):
    id: int
    student_id: int
    subject_id: int
    assignment_id: Optional[int] = None
    percentage: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
