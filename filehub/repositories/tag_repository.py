"""Tag repository for database operations."""

from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func

from ..exceptions import TagNotFoundError
from ..models import File, FileTag, Tag
from .base import BaseRepository


class TagRepository(BaseRepository[Tag]):
    model_class = Tag
    not_found_error = TagNotFoundError

    def get_by_name(self, owner_id: str, name: str, exclude_id: Optional[str] = None) -> Optional[Tag]:
        query = self._owned_query(owner_id).filter(Tag.name == name)
        if exclude_id is not None:
            query = query.filter(Tag.id != exclude_id)
        return query.first()

    def find_owned(self, tag_ids: Iterable[str], owner_id: str) -> List[Tag]:
        ids = list(tag_ids)
        if not ids:
            return []
        return self._owned_query(owner_id).filter(Tag.id.in_(ids)).all()

    def list_with_counts(
        self, owner_id: str, search: Optional[str] = None, by_usage: bool = False
    ) -> List[Tuple[Tag, int]]:
        """Owned tags with their file counts, by name or by usage (most used first)."""
        file_count = func.count(FileTag.file_id).label("file_count")
        query = (
            self.db.query(Tag, file_count)
            .outerjoin(FileTag, FileTag.tag_id == Tag.id)
            .filter(Tag.user_id == owner_id)
            .group_by(Tag.id)
        )
        if search:
            query = query.filter(Tag.name.ilike(f"%{search}%"))
        if by_usage:
            query = query.order_by(file_count.desc(), Tag.name.asc())
        else:
            query = query.order_by(Tag.name.asc())
        return [(tag, count or 0) for tag, count in query.all()]

    def file_count(self, tag_id: str) -> int:
        return self.db.query(func.count(FileTag.file_id)).filter(FileTag.tag_id == tag_id).scalar() or 0

    def recent_files(self, tag_id: str, limit: int) -> List[File]:
        """Newest files carrying the tag (trashed included, as counted)."""
        return (
            self.db.query(File)
            .join(FileTag, FileTag.file_id == File.id)
            .filter(FileTag.tag_id == tag_id)
            .order_by(File.created_at.desc())
            .limit(limit)
            .all()
        )
