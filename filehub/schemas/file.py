"""File schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from .common import ApiModel, Pagination
from ..services.thumbnails import thumbnail_url


class FolderSummary(ApiModel):
    id: str
    name: str
    parent_id: Optional[str] = None


class TagSummary(ApiModel):
    id: str
    name: str
    color: str


class OwnerSummary(ApiModel):
    id: str
    name: Optional[str] = None
    email: str


class FileResponse(ApiModel):
    """A file row with joined summaries and derived presentation fields."""
    id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    blob_id: str
    blob_url: str
    description: Optional[str] = None
    folder_id: Optional[str] = None
    user_id: str
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
    folder: Optional[FolderSummary] = None
    tags: List[TagSummary] = []
    user: Optional[OwnerSummary] = None
    is_image: bool
    is_video: bool
    is_document: bool
    thumbnail_url: str

    @classmethod
    def fields_from(cls, file) -> dict:
        return {
            "id": file.id,
            "filename": file.filename,
            "original_name": file.original_name,
            "mime_type": file.mime_type,
            "size": file.size,
            "blob_id": file.blob_id,
            "blob_url": file.blob_url,
            "description": file.description,
            "folder_id": file.folder_id,
            "user_id": file.user_id,
            "created_at": file.created_at,
            "updated_at": file.updated_at,
            "deleted_at": file.deleted_at,
            "folder": FolderSummary.model_validate(file.folder) if file.folder else None,
            "tags": [TagSummary.model_validate(t) for t in file.tags],
            "user": OwnerSummary.model_validate(file.owner) if file.owner else None,
            "is_image": file.is_image,
            "is_video": file.is_video,
            "is_document": file.is_document,
            "thumbnail_url": thumbnail_url(file.blob_url, file.mime_type),
        }

    @classmethod
    def from_file(cls, file) -> "FileResponse":
        return cls(**cls.fields_from(file))


class FileListResponse(ApiModel):
    files: List[FileResponse]
    pagination: Pagination


class FileEnvelope(ApiModel):
    file: FileResponse


class FileUpdate(ApiModel):
    """Partial update. An explicit ``folderId: null`` moves the file to root."""
    filename: Optional[str] = Field(None, min_length=1, max_length=255)
    original_name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    folder_id: Optional[str] = None


class FileTagsUpdate(ApiModel):
    tag_ids: List[str] = Field(..., max_length=10, description="Replaces the file's tag set (max 10)")


class FileTagsResponse(ApiModel):
    tags: List[TagSummary]
