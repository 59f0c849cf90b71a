"""Student request endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db, utcnow
from ..models import RequestStatus, StudentRequest, User, UserRole
from ..schemas.misc import RequestStatusUpdate, StudentRequestCreate, StudentRequestResponse
from ..services import NotificationService, log_activity
from ..services.activity import REQUEST_RESOLVED
from .common import OVERSIGHT_ROLES, ensure_self_or_staff, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/requests", tags=["Requests"])


@router.get("", response_model=list[StudentRequestResponse])
async def list_requests(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.director, UserRole.teacher)),
):
    """Admins and directors see every request, teachers only the pending ones."""
    query = db.query(StudentRequest)
    if current_user.role not in OVERSIGHT_ROLES:
        query = query.filter(StudentRequest.status == RequestStatus.pending)
    return query.order_by(StudentRequest.created_at.desc(), StudentRequest.id.desc()).all()


@router.get("/student/{student_id}", response_model=list[StudentRequestResponse])
async def student_requests(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, student_id)
    return (
        db.query(StudentRequest)
        .filter(StudentRequest.student_id == student_id)
        .order_by(StudentRequest.created_at.desc(), StudentRequest.id.desc())
        .all()
    )


@router.post("", response_model=StudentRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    request_data: StudentRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.student)),
):
    student_request = StudentRequest(
        student_id=current_user.id,
        type=request_data.type,
        description=request_data.description,
    )
    db.add(student_request)
    db.flush()
    NotificationService(db).notify_admins(
        "New Student Request",
        f"{current_user.full_name} submitted a '{student_request.type}' request",
        related_id=student_request.id,
        related_type="request",
    )
    db.commit()
    db.refresh(student_request)
    return student_request


@router.put("/{request_id}/status", response_model=StudentRequestResponse)
async def update_request_status(
    request_id: int,
    status_data: RequestStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    if status_data.status not in (RequestStatus.approved, RequestStatus.rejected):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Status must be 'approved' or 'rejected'"
        )
    student_request = get_or_404(db, StudentRequest, request_id, "Request")

    student_request.status = status_data.status
    student_request.resolution = status_data.resolution
    student_request.resolved_by = current_user.id
    student_request.resolved_at = utcnow()

    NotificationService(db).notify(
        student_request.student_id,
        f"Request {status_data.status.value.capitalize()}",
        f"Your '{student_request.type}' request was {status_data.status.value}",
        related_id=student_request.id,
        related_type="request",
    )
    log_activity(
        db, REQUEST_RESOLVED,
        f"{current_user.full_name} {status_data.status.value} request #{student_request.id}",
        user_id=current_user.id, related_id=student_request.id, related_type="request",
    )
    db.commit()
    db.refresh(student_request)
    logger.info(f"Request {request_id} {status_data.status.value} by {current_user.email}")
    return student_request
