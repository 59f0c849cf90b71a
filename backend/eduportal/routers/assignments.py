"""Assignment, submission and grade endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db, utcnow
from ..models import (
    Assignment, Enrollment, Grade, NotificationCategory, Subject, Submission, SubmissionStatus, User, UserRole,
)
from ..schemas.assignment import (
    AssignmentCreate, AssignmentResponse, AssignmentUpdate, GradeCreate, GradeResponse, GradeUpdate,
    StudentAssignmentResponse, SubmissionGrade, SubmissionResponse, TeacherAssignmentResponse,
)
from ..services import FileStorage, FileStorageError, FileTooLargeError, NotificationService, get_storage
from ..services.activity import ASSIGNMENT_CREATED, log_activity
from .common import (
    OVERSIGHT_ROLES, clean_updates, ensure_self_or_oversight, ensure_self_or_staff, forbid, get_or_404,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/assignments", tags=["Assignments"])
submissions_router = APIRouter(prefix="/api/submissions", tags=["Submissions"])
grades_router = APIRouter(prefix="/api/grades", tags=["Grades"])


def _teaches(user: User, subject: Subject) -> bool:
    return user.is_admin or (user.is_teacher and subject.teacher_id == user.id)


def _can_manage(user: User, assignment: Assignment) -> bool:
    return user.is_admin or (user.is_teacher and assignment.created_by == user.id)


def _is_enrolled(db: Session, student_id: int, subject_id: int) -> bool:
    return db.query(Enrollment).filter(
        Enrollment.student_id == student_id,
        Enrollment.subject_id == subject_id,
    ).first() is not None


def _assignments_for_student(db: Session, student_id: int):
    subject_ids = select(Enrollment.subject_id).where(Enrollment.student_id == student_id)
    return db.query(Assignment).filter(Assignment.subject_id.in_(subject_ids)).order_by(Assignment.due_date)


# --- Assignments ---

@router.get("", response_model=list[AssignmentResponse])
async def list_assignments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher, UserRole.director)),
):
    return db.query(Assignment).order_by(Assignment.due_date).all()


@router.get("/student", response_model=list[StudentAssignmentResponse])
async def my_student_assignments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.student)),
):
    """Assignments of the current student's subjects with their own submission."""
    assignments = _assignments_for_student(db, current_user.id).all()
    submissions = {
        s.assignment_id: s
        for s in db.query(Submission).filter(Submission.student_id == current_user.id).all()
    }
    result = []
    for assignment in assignments:
        item = StudentAssignmentResponse.model_validate(assignment)
        item.subject_name = assignment.subject.name
        submission = submissions.get(assignment.id)
        item.submission = SubmissionResponse.model_validate(submission) if submission else None
        result.append(item)
    return result


@router.get("/student/{student_id}", response_model=list[AssignmentResponse])
async def student_assignments(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, student_id)
    return _assignments_for_student(db, student_id).all()


@router.get("/teacher", response_model=list[TeacherAssignmentResponse])
async def my_teacher_assignments(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.teacher)),
):
    """The current teacher's assignments with subject, submissions and class size."""
    assignments = (
        db.query(Assignment)
        .filter(Assignment.created_by == current_user.id)
        .order_by(Assignment.due_date)
        .all()
    )
    result = []
    for assignment in assignments:
        item = TeacherAssignmentResponse.model_validate(assignment)
        item.student_count = assignment.subject.student_count
        result.append(item)
    return result


@router.get("/teacher/{teacher_id}", response_model=list[AssignmentResponse])
async def teacher_assignments(
    teacher_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_oversight(current_user, teacher_id)
    return db.query(Assignment).filter(Assignment.created_by == teacher_id).order_by(Assignment.due_date).all()


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    assignment = get_or_404(db, Assignment, assignment_id)
    if current_user.is_student and not _is_enrolled(db, current_user.id, assignment.subject_id):
        raise forbid()
    return assignment


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    assignment_data: AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    subject = get_or_404(db, Subject, assignment_data.subject_id)
    if not _teaches(current_user, subject):
        raise forbid("You can only create assignments for your own subjects")

    assignment = Assignment(**assignment_data.model_dump(), created_by=current_user.id)
    db.add(assignment)
    db.flush()

    student_ids = [e.student_id for e in subject.enrollments]
    NotificationService(db).notify_many(
        student_ids,
        "New Assignment",
        f"New assignment '{assignment.title}' in {subject.name}",
        category=NotificationCategory.assignment,
        related_id=assignment.id,
        related_type="assignment",
    )
    log_activity(
        db, ASSIGNMENT_CREATED, f"{current_user.full_name} created assignment '{assignment.title}'",
        user_id=current_user.id, related_id=assignment.id, related_type="assignment",
    )
    db.commit()
    db.refresh(assignment)
    return assignment


@router.put("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: int,
    assignment_data: AssignmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    assignment = get_or_404(db, Assignment, assignment_id)
    if not _can_manage(current_user, assignment):
        raise forbid("You can only edit your own assignments")

    changes = clean_updates(assignment, assignment_data.model_dump(exclude_unset=True))
    if "subject_id" in changes:
        subject = get_or_404(db, Subject, changes["subject_id"])
        if not _teaches(current_user, subject):
            raise forbid("You can only move assignments to your own subjects")
    for key, value in changes.items():
        setattr(assignment, key, value)
    db.commit()
    db.refresh(assignment)
    return assignment


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    assignment = get_or_404(db, Assignment, assignment_id)
    if not _can_manage(current_user, assignment):
        raise forbid("You can only delete your own assignments")
    db.delete(assignment)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Submissions ---

@submissions_router.get("/assignment/{assignment_id}", response_model=list[SubmissionResponse])
async def assignment_submissions(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    assignment = get_or_404(db, Assignment, assignment_id)
    query = db.query(Submission).filter(Submission.assignment_id == assignment.id)
    if current_user.is_student:
        query = query.filter(Submission.student_id == current_user.id)
    elif current_user.is_teacher and assignment.created_by != current_user.id:
        raise forbid("You can only view submissions for your own assignments")
    return query.order_by(Submission.submitted_at).all()


@submissions_router.get("/student/{student_id}", response_model=list[SubmissionResponse])
async def student_submissions(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, student_id)
    return (
        db.query(Submission)
        .filter(Submission.student_id == student_id)
        .order_by(Submission.submitted_at.desc())
        .all()
    )


@submissions_router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_assignment(
    assignment_id: int = Form(...),
    content: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    current_user: User = Depends(require_roles(UserRole.student)),
):
    """Submit (or re-submit) work for an assignment."""
    assignment = get_or_404(db, Assignment, assignment_id)
    if not _is_enrolled(db, current_user.id, assignment.subject_id):
        raise forbid("You are not enrolled in this subject")

    file_url = None
    if file is not None and file.filename:
        try:
            file_url = storage.save(file.file, file.filename, category="submissions").url
        except FileTooLargeError as e:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
        except FileStorageError as e:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    submission = db.query(Submission).filter(
        Submission.assignment_id == assignment.id,
        Submission.student_id == current_user.id,
    ).first()
    is_new = submission is None
    if is_new:
        submission = Submission(assignment_id=assignment.id, student_id=current_user.id)
        db.add(submission)

    if content is not None:
        submission.content = content
    replaced_url = None
    if file_url:
        replaced_url = submission.file_url
        submission.file_url = file_url
    submission.submitted_at = utcnow()
    submission.status = SubmissionStatus.completed
    db.flush()

    teacher_id = assignment.subject.teacher_id
    if is_new and teacher_id:
        NotificationService(db).notify(
            teacher_id,
            "New Submission",
            f"{current_user.full_name} submitted '{assignment.title}'",
            category=NotificationCategory.assignment,
            related_id=submission.id,
            related_type="submission",
        )
    db.commit()
    db.refresh(submission)
    if replaced_url and replaced_url != file_url:
        storage.delete(replaced_url)
    return submission


@submissions_router.put("/{submission_id}/grade", response_model=SubmissionResponse)
async def grade_submission(
    submission_id: int,
    grade_data: SubmissionGrade,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    submission = get_or_404(db, Submission, submission_id)
    assignment = submission.assignment
    if not _teaches(current_user, assignment.subject):
        raise forbid("You can only grade submissions for your own subjects")

    submission.grade = grade_data.grade
    submission.feedback = grade_data.feedback
    submission.status = SubmissionStatus.graded

    grade = db.query(Grade).filter(
        Grade.student_id == submission.student_id,
        Grade.assignment_id == assignment.id,
    ).first()
    if grade is None:
        grade = Grade(
            student_id=submission.student_id,
            subject_id=assignment.subject_id,
            assignment_id=assignment.id,
        )
        db.add(grade)
    grade.score = grade_data.grade
    grade.max_score = 100
    grade.comments = grade_data.feedback

    NotificationService(db).notify(
        submission.student_id,
        "Assignment Graded",
        f"Your submission for '{assignment.title}' received {grade_data.grade}/100",
        category=NotificationCategory.grade,
        related_id=submission.id,
        related_type="submission",
    )
    db.commit()
    db.refresh(submission)
    return submission


# --- Grades ---

@grades_router.get("/student/{student_id}", response_model=list[GradeResponse])
async def student_grades(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, student_id)
    return db.query(Grade).filter(Grade.student_id == student_id).order_by(Grade.created_at.desc()).all()


@grades_router.get("/subject/{subject_id}", response_model=list[GradeResponse])
async def subject_grades(
    subject_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    subject = get_or_404(db, Subject, subject_id)
    if current_user.role not in OVERSIGHT_ROLES and not _teaches(current_user, subject):
        raise forbid()
    return db.query(Grade).filter(Grade.subject_id == subject_id).order_by(Grade.created_at.desc()).all()


@grades_router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def create_grade(
    grade_data: GradeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    subject = get_or_404(db, Subject, grade_data.subject_id)
    if not _teaches(current_user, subject):
        raise forbid("You can only grade students in your own subjects")
    student = get_or_404(db, User, grade_data.student_id, "Student")
    if not student.is_student:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Grades can only be given to students")
    if grade_data.assignment_id is not None:
        assignment = get_or_404(db, Assignment, grade_data.assignment_id)
        if assignment.subject_id != subject.id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignment belongs to another subject")

    grade = Grade(**grade_data.model_dump())
    db.add(grade)
    db.flush()
    NotificationService(db).notify(
        student.id,
        "New Grade Posted",
        f"You received {grade.score:g}/{grade.max_score:g} in {subject.name}",
        category=NotificationCategory.grade,
        related_id=grade.id,
        related_type="grade",
    )
    db.commit()
    db.refresh(grade)
    return grade


@grades_router.put("/{grade_id}", response_model=GradeResponse)
async def update_grade(
    grade_id: int,
    grade_data: GradeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin, UserRole.teacher)),
):
    grade = get_or_404(db, Grade, grade_id)
    if not _teaches(current_user, grade.subject):
        raise forbid("You can only edit grades in your own subjects")

    changes = grade_data.model_dump(exclude_unset=True)
    score = changes.get("score", grade.score)
    max_score = changes.get("max_score", grade.max_score)
    if score is None or max_score is None or score > max_score:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="score cannot exceed max_score")

    for key, value in changes.items():
        setattr(grade, key, value)
    db.commit()
    db.refresh(grade)
    return grade
