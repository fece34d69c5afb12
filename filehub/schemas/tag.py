"""Tag schemas."""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .common import ApiModel

_HEX_COLOR = re.compile(r"^#[0-9A-F]{6}$", re.IGNORECASE)


def _normalize_name(v: str) -> str:
    v = v.strip().lower()
    if not v:
        raise ValueError("Tag name is required")
    return v


def _normalize_color(v: str) -> str:
    if not _HEX_COLOR.match(v):
        raise ValueError("Color must be a hex value like #3B82F6")
    return v.upper()


class TagCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=50)
    color: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _normalize_name(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _normalize_color(v)


class TagUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    color: Optional[str] = None
    description: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _normalize_name(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _normalize_color(v)


class TagFileSummary(ApiModel):
    id: str
    original_name: str
    blob_url: str
    mime_type: str
    created_at: datetime


class TagResponse(ApiModel):
    id: str
    name: str
    color: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    file_count: int = 0
    recent_files: Optional[List[TagFileSummary]] = None


class TagDetailResponse(TagResponse):
    files: List[TagFileSummary] = []


class TagListResponse(ApiModel):
    tags: List[TagResponse]


class TagEnvelope(ApiModel):
    tag: TagResponse


class TagDetailEnvelope(ApiModel):
    tag: TagDetailResponse
