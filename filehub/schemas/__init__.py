"""Pydantic schemas for API validation."""

from .common import ApiModel, Pagination, SuccessResponse
from .file import (
    FileResponse,
    FileListResponse,
    FileEnvelope,
    FileUpdate,
    FileTagsUpdate,
    FileTagsResponse,
)
from .bulk import BulkOperation, BulkOperationRequest, BulkItemResult, BulkOperationResponse
from .search import SearchResult, SearchResponse, SearchFilters, SearchHistoryResponse
from .folder import FolderCreate, FolderUpdate, FolderResponse, FolderDetailResponse
from .tag import TagCreate, TagUpdate, TagResponse, TagDetailResponse

__all__ = [
    "ApiModel",
    "Pagination",
    "SuccessResponse",
    "FileResponse",
    "FileListResponse",
    "FileEnvelope",
    "FileUpdate",
    "FileTagsUpdate",
    "FileTagsResponse",
    "BulkOperation",
    "BulkOperationRequest",
    "BulkItemResult",
    "BulkOperationResponse",
    "SearchResult",
    "SearchResponse",
    "SearchFilters",
    "SearchHistoryResponse",
    "FolderCreate",
    "FolderUpdate",
    "FolderResponse",
    "FolderDetailResponse",
    "TagCreate",
    "TagUpdate",
    "TagResponse",
    "TagDetailResponse",
]
