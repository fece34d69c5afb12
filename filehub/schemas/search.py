"""Search schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from .common import ApiModel, Pagination
from .file import FileResponse


class SearchResult(FileResponse):
    relevance_score: int = 0
    highlighted_name: str
    highlighted_description: Optional[str] = None


class SearchFilters(ApiModel):
    type: str = "all"
    folder_id: Optional[str] = None
    tags: List[str] = []
    min_size: Optional[int] = None
    max_size: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class SearchResponse(ApiModel):
    query: str
    results: List[SearchResult]
    pagination: Pagination
    filters: SearchFilters


class SearchHistoryEntry(ApiModel):
    id: int
    query: str
    filters: Optional[Dict[str, Any]] = None
    results_count: int
    created_at: datetime


class SearchHistoryResponse(ApiModel):
    history: List[SearchHistoryEntry]
