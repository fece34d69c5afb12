"""Upload API: multipart upload into the blob store, plus a status probe."""

from typing import Optional

from fastapi import APIRouter, Depends, File as FormFile, Form, UploadFile
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.admin import UploadResponse, UploadStatusResponse
from ..schemas.file import FileResponse
from ..services.blob_store import BlobStore, get_blob_store
from ..services.upload_service import UploadService, upload_status

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.get("", response_model=UploadStatusResponse)
def get_upload_status(
    auth: AuthContext = Depends(require_auth),
    blob_store: BlobStore = Depends(get_blob_store),
):
    return upload_status(blob_store)


@router.post("", response_model=UploadResponse)
def upload_file(
    file: UploadFile = FormFile(...),
    folder_id: Optional[str] = Form(None, alias="folderId"),
    description: Optional[str] = Form(None),
    tag_ids: Optional[str] = Form(None, alias="tagIds", description="JSON array or comma-separated ids"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Store one file. Returns 503 when no blob store is configured."""
    data = file.file.read()
    record = UploadService(db, blob_store).upload(
        auth.user_id,
        data,
        filename=file.filename or "",
        content_type=file.content_type or "application/octet-stream",
        folder_id=folder_id,
        description=description,
        raw_tag_ids=tag_ids,
    )
    return UploadResponse(file=FileResponse.from_file(record))
