"""Subject and enrollment endpoints."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db
from ..models import Enrollment, Subject, User, UserRole
from ..schemas.subject import (
    EnrollmentCreate, EnrollmentResponse, SubjectCreate, SubjectResponse, SubjectUpdate,
)
from .common import apply_updates, ensure_self_or_staff, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/subjects", tags=["Subjects"])
enrollments_router = APIRouter(prefix="/api/enrollments", tags=["Enrollments"])


def _check_teacher(db: Session, teacher_id) -> None:
    if teacher_id is None:
        return
    teacher = db.get(User, teacher_id)
    if teacher is None or teacher.role != UserRole.teacher:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="teacher_id must reference a teacher")


@router.get("", response_model=list[SubjectResponse])
async def list_subjects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return db.query(Subject).order_by(Subject.name).all()


@router.get("/teacher", response_model=list[SubjectResponse])
async def list_my_subjects(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.teacher, UserRole.admin)),
):
    """Subjects taught by the current user."""
    return db.query(Subject).filter(Subject.teacher_id == current_user.id).order_by(Subject.name).all()


@router.get("/{subject_id}", response_model=SubjectResponse)
async def get_subject(
    subject_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return get_or_404(db, Subject, subject_id)


@router.post("", response_model=SubjectResponse, status_code=status.HTTP_201_CREATED)
async def create_subject(
    subject_data: SubjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    _check_teacher(db, subject_data.teacher_id)
    subject = Subject(**subject_data.model_dump())
    if not subject.short_name:
        subject.short_name = subject.name[:10]
    db.add(subject)
    db.commit()
    db.refresh(subject)
    logger.info(f"Created subject {subject.id} '{subject.name}'")
    return subject


@router.put("/{subject_id}", response_model=SubjectResponse)
async def update_subject(
    subject_id: int,
    subject_data: SubjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    subject = get_or_404(db, Subject, subject_id)
    changes = subject_data.model_dump(exclude_unset=True)
    if "teacher_id" in changes:
        _check_teacher(db, changes["teacher_id"])
    apply_updates(subject, changes)
    db.commit()
    db.refresh(subject)
    return subject


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subject(
    subject_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    subject = get_or_404(db, Subject, subject_id)
    db.delete(subject)
    db.commit()
    logger.info(f"Deleted subject {subject_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Enrollments ---

@enrollments_router.get("", response_model=list[EnrollmentResponse])
async def list_enrollments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher, UserRole.director)),
):
    return db.query(Enrollment).order_by(Enrollment.id).all()


@enrollments_router.get("/student/{student_id}", response_model=list[EnrollmentResponse])
async def list_student_enrollments(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, student_id)
    return db.query(Enrollment).filter(Enrollment.student_id == student_id).order_by(Enrollment.id).all()


@enrollments_router.get("/subject/{subject_id}", response_model=list[EnrollmentResponse])
async def list_subject_enrollments(
    subject_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    get_or_404(db, Subject, subject_id)
    return db.query(Enrollment).filter(Enrollment.subject_id == subject_id).order_by(Enrollment.id).all()


@enrollments_router.post("", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
async def create_enrollment(
    enrollment_data: EnrollmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    student = get_or_404(db, User, enrollment_data.student_id, "Student")
    if not student.is_student:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only students can be enrolled")
    get_or_404(db, Subject, enrollment_data.subject_id)

    existing = db.query(Enrollment).filter(
        Enrollment.student_id == enrollment_data.student_id,
        Enrollment.subject_id == enrollment_data.subject_id,
    ).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student is already enrolled")

    enrollment = Enrollment(**enrollment_data.model_dump())
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    return enrollment


@enrollments_router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(
    enrollment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    enrollment = get_or_404(db, Enrollment, enrollment_id)
    db.delete(enrollment)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
