"""Upload service — validates an upload, stores the body, records the row.

The blob is written first; if the database write then fails the blob is
removed again (best-effort) so no orphan is left behind.
"""

import json
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..exceptions import (
    DatabaseError,
    FolderNotFoundError,
    ServiceUnavailableError,
    TagNotFoundError,
    ValidationError,
)
from ..models import File, FileTag
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..repositories.tag_repository import TagRepository
from ..schemas.admin import UploadStatusResponse
from .blob_store import BlobStore

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


def parse_tag_ids(raw: Optional[str]) -> List[str]:
    """Accept a JSON array or a comma-separated list."""
    if not raw or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = raw.split(",")
    if isinstance(parsed, str):
        parsed = [parsed]
    if not isinstance(parsed, list):
        raise ValidationError("tagIds must be a list of tag ids", field="tagIds")
    return list(dict.fromkeys(str(t).strip() for t in parsed if str(t).strip()))


def resource_type_for(mime_type: str) -> str:
    if mime_type == "application/pdf":
        return "raw"
    if mime_type.startswith("video/"):
        return "video"
    if mime_type.startswith("image/"):
        return "image"
    return "raw"


def check_upload_size(mime_type: str, size: int) -> None:
    is_video = mime_type.startswith("video/")
    is_image = mime_type.startswith("image/")
    limit = settings.max_upload_size if is_video else settings.max_image_size
    if size > limit:
        kind = "video" if is_video else "image" if is_image else "file"
        raise ValidationError(
            f"{kind} size too large. Maximum size is {round(limit / _MB)}MB.", field="file"
        )


def upload_status(blob_store: BlobStore) -> UploadStatusResponse:
    return UploadStatusResponse(
        configured=blob_store.is_configured,
        max_upload_size=settings.max_upload_size,
        max_image_size=settings.max_image_size,
        allowed_types=settings.get_allowed_upload_types(),
    )


class UploadService:
    def __init__(self, db: Session, blob_store: BlobStore):
        self.db = db
        self.blob_store = blob_store
        self.files = FileRepository(db)
        self.folders = FolderRepository(db)
        self.tags = TagRepository(db)

    def upload(
        self,
        owner_id: str,
        data: bytes,
        filename: str,
        content_type: str,
        folder_id: Optional[str] = None,
        description: Optional[str] = None,
        raw_tag_ids: Optional[str] = None,
    ) -> File:
        """Store one uploaded file for *owner_id* and return its row."""
        if not self.blob_store.is_configured:
            raise ServiceUnavailableError(
                "File upload service not configured. Please contact administrator."
            )
        if not filename:
            raise ValidationError("No file provided", field="file")

        check_upload_size(content_type, len(data))
        if content_type not in settings.get_allowed_upload_types():
            raise ValidationError("File type not supported", field="file")

        folder_id = folder_id or None
        if folder_id is not None and self.folders.get_owned_optional(folder_id, owner_id) is None:
            raise FolderNotFoundError(folder_id, "Folder not found")

        tag_ids = parse_tag_ids(raw_tag_ids)
        if tag_ids and len(self.tags.find_owned(tag_ids, owner_id)) != len(tag_ids):
            raise TagNotFoundError(tag_ids[0], "Some tags not found or access denied")

        stored = self.blob_store.upload(
            data,
            folder=owner_id,
            resource_type=resource_type_for(content_type),
            filename=filename,
            content_type=content_type,
        )

        try:
            record = File(
                filename=stored.id.rsplit("/", 1)[-1] or filename,
                original_name=filename,
                mime_type=content_type,
                size=stored.bytes,
                blob_id=stored.id,
                blob_url=stored.url,
                description=description or None,
                folder_id=folder_id,
                user_id=owner_id,
            )
            self.db.add(record)
            self.db.flush()
            for tag_id in tag_ids:
                self.db.add(FileTag(file_id=record.id, tag_id=tag_id))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Upload row write failed; removing blob", extra={"blob_id": stored.id, "error": str(e)})
            try:
                self.blob_store.delete(stored.id)
            except Exception as cleanup_error:
                logger.warning(
                    "Blob cleanup after failed upload did not succeed",
                    extra={"blob_id": stored.id, "error": str(cleanup_error)},
                )
            raise DatabaseError("Failed to save file record", original_error=e)

        logger.info(
            "File uploaded",
            extra={"file_id": record.id, "owner_id": owner_id, "bytes": stored.bytes, "mime_type": content_type},
        )
        return self.files.get_owned_any_state(record.id, owner_id)
