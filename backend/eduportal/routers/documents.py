"""Document endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from ..auth.service import get_current_active_user, require_roles
from ..database import get_db
from ..models import Document, User, UserRole
from ..schemas.misc import DocumentResponse
from ..services import FileStorage, FileStorageError, FileTooLargeError, NotificationService, get_storage
from .common import ensure_self_or_staff, get_or_404

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["Documents"])


@router.get("", response_model=list[DocumentResponse])
async def my_documents(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    return (
        db.query(Document)
        .filter(Document.user_id == current_user.id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .all()
    )


@router.get("/user/{user_id}", response_model=list[DocumentResponse])
async def user_documents(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, user_id)
    return (
        db.query(Document)
        .filter(Document.user_id == user_id)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .all()
    )


@router.get("/user/{user_id}/type/{document_type}", response_model=list[DocumentResponse])
async def user_documents_by_type(
    user_id: int,
    document_type: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
):
    ensure_self_or_staff(current_user, user_id)
    return (
        db.query(Document)
        .filter(Document.user_id == user_id, Document.type == document_type)
        .order_by(Document.created_at.desc(), Document.id.desc())
        .all()
    )


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    user_id: int = Form(...),
    title: str = Form(..., min_length=1, max_length=255),
    type: str = Form(..., min_length=1, max_length=100),
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    """Issue a document to a user, optionally with an attached file."""
    owner = get_or_404(db, User, user_id)

    file_url = None
    if file is not None and file.filename:
        try:
            file_url = storage.save(file.file, file.filename, category="documents").url
        except FileTooLargeError as e:
            raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
        except FileStorageError as e:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    document = Document(
        user_id=owner.id,
        title=title,
        type=type,
        file_url=file_url,
        created_by=current_user.id,
    )
    db.add(document)
    db.flush()
    NotificationService(db).notify(
        owner.id,
        "New Document",
        f"A new document '{title}' is available",
        related_id=document.id,
        related_type="document",
    )
    db.commit()
    db.refresh(document)
    logger.info(f"Document {document.id} issued to user {owner.id}")
    return document


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    current_user: User = Depends(require_roles(UserRole.admin)),
):
    document = get_or_404(db, Document, document_id)
    file_url = document.file_url
    db.delete(document)
    db.commit()
    storage.delete(file_url)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
