"""Admin, activity and upload schemas."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from .common import ApiModel, Pagination
from .file import FileResponse


class AdminUserResponse(ApiModel):
    id: str
    name: Optional[str] = None
    email: str
    role: str
    created_at: datetime
    updated_at: datetime
    file_count: int = 0
    folder_count: int = 0


class AdminUserListResponse(ApiModel):
    users: List[AdminUserResponse]
    pagination: Pagination


class AdminUserEnvelope(ApiModel):
    user: AdminUserResponse


class CreateAdminRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: str
    password: str = Field(..., min_length=8)
    role: Literal["admin", "super_admin"]


class UpdateRoleRequest(ApiModel):
    role: Literal["super_admin", "admin", "user"]


class StatsOverview(ApiModel):
    total_users: int
    active_users: int
    total_files: int
    total_folders: int
    total_tags: int
    new_files_count: int
    new_users_count: int
    total_storage_used: int
    period: str


class UploadTrendPoint(ApiModel):
    date: str
    uploads: int
    bytes: int


class TypeCount(ApiModel):
    type: str
    count: int


class PopularTag(ApiModel):
    id: str
    name: str
    color: str
    count: int


class TopUser(ApiModel):
    id: str
    name: Optional[str] = None
    email: str
    file_count: int


class StatsCharts(ApiModel):
    upload_trends: List[UploadTrendPoint]
    file_type_distribution: List[TypeCount]
    popular_tags: List[PopularTag]


class AdminStatsResponse(ApiModel):
    overview: StatsOverview
    charts: StatsCharts
    top_users: List[TopUser]


class Activity(ApiModel):
    id: str
    type: Literal["upload", "folder", "tag"]
    title: str
    description: str
    time: datetime


class ActivityListResponse(ApiModel):
    activities: List[Activity]


class UploadResponse(ApiModel):
    file: FileResponse


class UploadStatusResponse(ApiModel):
    configured: bool
    max_upload_size: int
    max_image_size: int
    allowed_types: List[str]
