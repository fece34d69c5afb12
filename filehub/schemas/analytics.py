"""Per-user analytics schemas."""

from datetime import datetime
from typing import Dict, List

from .admin import PopularTag, UploadTrendPoint
from .common import ApiModel


class AnalyticsOverview(ApiModel):
    total_files: int
    total_folders: int
    total_tags: int
    storage_used: int
    recent_uploads: int


class TypeUsage(ApiModel):
    count: int = 0
    size: int = 0


class FolderUsage(ApiModel):
    id: str
    name: str
    file_count: int


class AnalyticsOverviewResponse(ApiModel):
    timeframe: str
    overview: AnalyticsOverview
    file_types: Dict[str, TypeUsage]
    upload_trend: List[UploadTrendPoint]
    top_tags: List[PopularTag]
    top_folders: List[FolderUsage]


class SizeDistribution(ApiModel):
    small: int = 0
    medium: int = 0
    large: int = 0
    huge: int = 0


class LargestFile(ApiModel):
    id: str
    original_name: str
    mime_type: str
    size: int
    created_at: datetime


class FileAnalyticsResponse(ApiModel):
    timeframe: str
    timeline: List[UploadTrendPoint]
    size_distribution: SizeDistribution
    extensions: Dict[str, int]
    largest_files: List[LargestFile]
