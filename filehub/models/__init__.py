"""Database models."""

from .user import User
from .folder import Folder
from .file import File
from .tag import Tag, FileTag
from .search_history import SearchHistory

__all__ = ["User", "Folder", "File", "Tag", "FileTag", "SearchHistory"]
