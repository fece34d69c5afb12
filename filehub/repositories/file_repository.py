"""File repository for database operations.

Every default read goes through _base_query(), which excludes soft-deleted
files. The few callers that must see trashed files (single-file GET and
DELETE) use get_owned_any_state().
"""

from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Query, joinedload, selectinload

from ..exceptions import FileRecordNotFoundError
from ..models import File, FileTag
from .base import BaseRepository


def with_summaries(query: Query) -> Query:
    """Eager-load the folder, tag and owner summaries shown with each file."""
    return query.options(
        joinedload(File.folder),
        joinedload(File.owner),
        selectinload(File.tags),
    )


class FileRepository(BaseRepository[File]):
    """Repository for file rows."""

    model_class = File
    not_found_error = FileRecordNotFoundError

    def _base_query(self) -> Query:
        """Exclude soft-deleted files from all default queries."""
        return self.db.query(File).filter(File.deleted_at.is_(None))

    def get_owned_any_state(self, file_id: str, owner_id: str) -> File:
        """Owned file including trashed ones. Raises FileRecordNotFoundError."""
        file = (
            with_summaries(self.db.query(File))
            .filter(File.id == file_id, File.user_id == owner_id)
            .first()
        )
        if file is None:
            raise FileRecordNotFoundError(file_id)
        return file

    def find_owned(self, file_ids: Iterable[str], owner_id: str) -> List[File]:
        """Active files among *file_ids* owned by *owner_id* (any order)."""
        ids = list(file_ids)
        if not ids:
            return []
        return self._owned_query(owner_id).filter(File.id.in_(ids)).all()

    def name_taken(
        self,
        owner_id: str,
        folder_id: Optional[str],
        original_name: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        """True when an active file of the owner already uses the display name there."""
        query = self._owned_query(owner_id).filter(File.original_name == original_name)
        if folder_id is None:
            query = query.filter(File.folder_id.is_(None))
        else:
            query = query.filter(File.folder_id == folder_id)
        if exclude_id is not None:
            query = query.filter(File.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def blob_reference_count(self, blob_id: str, exclude_id: Optional[str] = None) -> int:
        """Rows (trashed included) pointing at *blob_id*."""
        query = self.db.query(func.count(File.id)).filter(File.blob_id == blob_id)
        if exclude_id is not None:
            query = query.filter(File.id != exclude_id)
        return query.scalar() or 0

    def replace_tags(self, file_id: str, tag_ids: Iterable[str]) -> None:
        """Delete every tag link of the file, then insert the new set.

        Only flushes; the caller commits both steps together.
        """
        self.db.query(FileTag).filter(FileTag.file_id == file_id).delete(synchronize_session=False)
        for tag_id in dict.fromkeys(tag_ids):
            self.db.add(FileTag(file_id=file_id, tag_id=tag_id))
        self.db.flush()
