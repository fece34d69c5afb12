"""Data access repositories."""

from .base import BaseRepository, lock_owner
from .file_repository import FileRepository
from .folder_repository import FolderRepository
from .tag_repository import TagRepository

__all__ = [
    "BaseRepository",
    "lock_owner",
    "FileRepository",
    "FolderRepository",
    "TagRepository",
]
