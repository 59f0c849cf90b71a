"""Schemas for requests, documents, messages, notifications and activity logs."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models import MessageStatus, RequestStatus


class StudentRequestCreate(BaseModel):
    type: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)


class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    resolution: Optional[str] = None


class StudentRequestResponse(BaseModel):
    id: int
    student_id: int
    type: str
    description: str
    status: RequestStatus
    created_at: Optional[datetime] = None
    resolved_by: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentResponse(BaseModel):
    id: int
    user_id: int
    title: str
    type: str
    file_url: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    to_user_id: int
    content: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    id: int
    from_user_id: int
    to_user_id: int
    content: str
    sent_at: Optional[datetime] = None
    status: MessageStatus

    model_config = ConfigDict(from_attributes=True)


class MarkMessagesRead(BaseModel):
    message_ids: list[int]


class NotificationCreate(BaseModel):
    user_id: int
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    related_id: Optional[int] = None
    related_type: Optional[str] = Field(None, max_length=50)


class NotificationResponse(BaseModel):
    id: int
    user_id: int
    title: str
    content: str
    is_read: bool
    created_at: Optional[datetime] = None
    related_id: Optional[int] = None
    related_type: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ActivityLogResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    type: str
    description: str
    related_id: Optional[int] = None
    related_type: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
