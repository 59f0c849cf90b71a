"""Schedule endpoints, including CSV import and imported file records."""
import io
import logging

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from fastapi.responses import PlainTextResponse
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db
from ..models import Enrollment, ImportedFile, ScheduleItem, Subject, User, UserRole
from ..schemas.subject import (
    ImportedFileResponse, ImportResponse, ScheduleItemCreate, ScheduleItemResponse, ScheduleItemUpdate,
)
from ..services import FileStorage, FileStorageError, FileTooLargeError, ScheduleImporter, ScheduleImportError, get_storage
from ..services.activity import SCHEDULE_IMPORTED, log_activity
from ..services.schedule_import import TEMPLATE_CSV
from .common import clean_updates, ensure_self_or_oversight, ensure_self_or_staff, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/schedule", tags=["Schedule"])
imported_files_router = APIRouter(prefix="/api/imported-files", tags=["Schedule"])
template_router = APIRouter(tags=["Schedule"])

ALLOWED_IMPORT_EXTENSIONS = (".csv", ".txt")


def _serialize(item: ScheduleItem) -> dict:
    subject = item.subject
    return {
        "id": item.id,
        "subject_id": item.subject_id,
        "day_of_week": item.day_of_week,
        "start_time": item.start_time,
        "end_time": item.end_time,
        "room_number": item.room_number or subject.room_number,
        "teacher_name": item.teacher_name or subject.teacher_name,
        "imported_file_id": item.imported_file_id,
        "subject_name": subject.name,
        "subject_color": subject.color,
    }


def _enriched(query) -> list[dict]:
    items = (
        query.options(joinedload(ScheduleItem.subject).joinedload(Subject.teacher))
        .order_by(ScheduleItem.day_of_week, ScheduleItem.start_time)
        .all()
    )
    # Items whose subject has disappeared are left out
    return [_serialize(item) for item in items if item.subject is not None]


def _student_schedule(db: Session, student_id: int) -> list[dict]:
    subject_ids = select(Enrollment.subject_id).where(Enrollment.student_id == student_id)
    return _enriched(db.query(ScheduleItem).filter(ScheduleItem.subject_id.in_(subject_ids)))


def _teacher_schedule(db: Session, teacher_id: int) -> list[dict]:
    return _enriched(db.query(ScheduleItem).join(Subject).filter(Subject.teacher_id == teacher_id))


@router.get("", response_model=list[ScheduleItemResponse])
async def list_schedule(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    """The whole weekly schedule."""
    return _enriched(db.query(ScheduleItem))


@router.get("/student", response_model=list[ScheduleItemResponse])
async def my_student_schedule(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.student)),
):
    return _student_schedule(db, current_user.id)


@router.get("/student/{student_id}", response_model=list[ScheduleItemResponse])
async def student_schedule(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, student_id)
    return _student_schedule(db, student_id)


@router.get("/teacher", response_model=list[ScheduleItemResponse])
async def my_teacher_schedule(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.teacher)),
):
    return _teacher_schedule(db, current_user.id)


@router.get("/teacher/{teacher_id}", response_model=list[ScheduleItemResponse])
async def teacher_schedule(
    teacher_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_oversight(current_user, teacher_id)
    return _teacher_schedule(db, teacher_id)


@router.post("", response_model=ScheduleItemResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule_item(
    item_data: ScheduleItemCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    get_or_404(db, Subject, item_data.subject_id)
    item = ScheduleItem(**item_data.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    return _serialize(item)


@router.put("/{item_id}", response_model=ScheduleItemResponse)
async def update_schedule_item(
    item_id: int,
    item_data: ScheduleItemUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    item = get_or_404(db, ScheduleItem, item_id, "Schedule item")
    changes = clean_updates(item, item_data.model_dump(exclude_unset=True))
    if "subject_id" in changes:
        get_or_404(db, Subject, changes["subject_id"])

    start = changes.get("start_time", item.start_time)
    end = changes.get("end_time", item.end_time)
    if end <= start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_time must be after start_time")

    for key, value in changes.items():
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return _serialize(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule_item(
    item_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    item = get_or_404(db, ScheduleItem, item_id, "Schedule item")
    db.delete(item)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/import/csv", response_model=ImportResponse)
async def import_schedule_csv(
    csv_file: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    """Import schedule items from an uploaded CSV file."""
    filename = csv_file.filename or "schedule.csv"
    if not filename.lower().endswith(ALLOWED_IMPORT_EXTENSIONS):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only CSV files can be imported")

    data = await csv_file.read()
    if not data.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="The file is empty")

    try:
        stored = storage.save(io.BytesIO(data), filename, category="imports")
    except FileTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except FileStorageError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    try:
        summary = ScheduleImporter(db).run(data, stored, current_user)
    except ScheduleImportError as e:
        db.rollback()
        storage.delete(stored.url)
        logger.warning(f"Schedule import of {filename} rejected: {e.message}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": e.errors},
        )

    log_activity(
        db, SCHEDULE_IMPORTED,
        f"{current_user.full_name} imported {summary.success} schedule item(s) from {filename}",
        user_id=current_user.id, related_id=summary.imported_file.id, related_type="imported_file",
    )
    db.commit()

    return {
        "message": f"Imported {summary.success} of {summary.total} rows",
        "imported_file_id": summary.imported_file.id,
        "result": summary.as_result(),
    }


@template_router.get("/schedule-template.csv", response_class=PlainTextResponse)
async def schedule_template():
    """CSV template for schedule imports."""
    return PlainTextResponse(
        TEMPLATE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="schedule-template.csv"'},
    )


# --- Imported files ---

@imported_files_router.get("", response_model=list[ImportedFileResponse])
async def list_imported_files(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    return db.query(ImportedFile).order_by(ImportedFile.created_at.desc(), ImportedFile.id.desc()).all()


@imported_files_router.get("/user/{user_id}", response_model=list[ImportedFileResponse])
async def list_user_imported_files(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    return (
        db.query(ImportedFile)
        .filter(ImportedFile.uploaded_by == user_id)
        .order_by(ImportedFile.created_at.desc(), ImportedFile.id.desc())
        .all()
    )


@imported_files_router.get("/type/{import_type}", response_model=list[ImportedFileResponse])
async def list_imported_files_by_type(
    import_type: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    return (
        db.query(ImportedFile)
        .filter(ImportedFile.import_type == import_type)
        .order_by(ImportedFile.created_at.desc(), ImportedFile.id.desc())
        .all()
    )


@imported_files_router.get("/{file_id}", response_model=ImportedFileResponse)
async def get_imported_file(
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    return get_or_404(db, ImportedFile, file_id, "Imported file")


@imported_files_router.delete("/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_imported_file(
    file_id: int,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    """Delete the record and its stored file; imported schedule items are kept."""
    imported_file = get_or_404(db, ImportedFile, file_id, "Imported file")
    file_url = imported_file.file_path
    db.delete(imported_file)
    db.commit()
    storage.delete(file_url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
