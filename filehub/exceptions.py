"""Custom exception hierarchy for FileHub."""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Resource errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FOLDER_NOT_FOUND = "FOLDER_NOT_FOUND"
    TAG_NOT_FOUND = "TAG_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Naming / state conflicts
    CONFLICT = "CONFLICT"
    FOLDER_NOT_EMPTY = "FOLDER_NOT_EMPTY"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # External collaborators
    BLOB_STORE_ERROR = "BLOB_STORE_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class FileHubException(Exception):
    """
    Base exception for all FileHub errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class FileRecordNotFoundError(FileHubException):
    """File not found (or not visible to the caller)."""

    def __init__(self, file_id: str):
        super().__init__(
            f"File not found: {file_id}",
            ErrorCode.FILE_NOT_FOUND,
            status_code=404,
            details={"file_id": file_id}
        )


class FolderNotFoundError(FileHubException):
    """Folder not found (or not visible to the caller)."""

    def __init__(self, folder_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Folder not found: {folder_id}",
            ErrorCode.FOLDER_NOT_FOUND,
            status_code=404,
            details={"folder_id": folder_id}
        )


class TagNotFoundError(FileHubException):
    """Tag not found, or some of a set of tags are not owned by the caller."""

    def __init__(self, tag_id: str, message: Optional[str] = None):
        super().__init__(
            message or f"Tag not found: {tag_id}",
            ErrorCode.TAG_NOT_FOUND,
            status_code=404,
            details={"tag_id": tag_id}
        )


class UserNotFoundError(FileHubException):
    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            ErrorCode.USER_NOT_FOUND,
            status_code=404,
            details={"user_id": user_id}
        )


class ValidationError(FileHubException):
    """Validation failed for user input.

    ``errors`` is a list of ``{"field": ..., "message": ...}`` entries, used
    when several fields are rejected at once.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if errors:
            details["errors"] = errors
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class AuthenticationError(FileHubException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(FileHubException):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(FileHubException):
    """Naming collision or other state conflict."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details=details
        )


class FolderNotEmptyError(FileHubException):
    """Folder deletion without ``force`` while it still has content."""

    def __init__(self, folder_id: str, files: int, subfolders: int):
        super().__init__(
            "Folder is not empty",
            ErrorCode.FOLDER_NOT_EMPTY,
            status_code=409,
            details={"folder_id": folder_id, "files": files, "subfolders": subfolders}
        )


class BlobStoreError(FileHubException):
    """The media host rejected or failed an operation."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = type(original_error).__name__
        super().__init__(
            message,
            ErrorCode.BLOB_STORE_ERROR,
            status_code=502,
            details=details
        )


class ServiceUnavailableError(FileHubException):
    def __init__(self, message: str):
        super().__init__(
            message,
            ErrorCode.SERVICE_UNAVAILABLE,
            status_code=503,
        )


class DatabaseError(FileHubException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
