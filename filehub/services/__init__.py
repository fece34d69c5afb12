"""Business logic services."""

from .bulk_operations import BulkOperationExecutor
from .file_service import FileService
from .folder_service import FolderService
from .search_service import SearchService
from .tag_service import TagService
from .upload_service import UploadService
from .admin_service import AdminService

__all__ = [
    "BulkOperationExecutor",
    "FileService",
    "FolderService",
    "SearchService",
    "TagService",
    "UploadService",
    "AdminService",
]
