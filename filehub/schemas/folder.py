"""Folder schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .common import ApiModel
from .file import FileResponse, FolderSummary


class FolderCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class FolderUpdate(ApiModel):
    """Partial update. An explicit ``parentId: null`` moves the folder to root."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    parent_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class FolderResponse(ApiModel):
    id: str
    name: str
    description: Optional[str] = None
    parent_id: Optional[str] = None
    user_id: str
    created_at: datetime
    updated_at: datetime
    file_count: int = 0
    subfolder_count: int = 0


class FolderDetailResponse(FolderResponse):
    parent: Optional[FolderSummary] = None
    children: List[FolderResponse] = []
    files: List[FileResponse] = []


class FolderListResponse(ApiModel):
    folders: List[FolderResponse]


class FolderEnvelope(ApiModel):
    folder: FolderResponse


class FolderDetailEnvelope(ApiModel):
    folder: FolderDetailResponse


class FolderDeleteResponse(ApiModel):
    success: bool = True
    deleted_files: int = 0
    deleted_folders: int = 0
