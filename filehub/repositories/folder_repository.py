"""Folder repository for database operations."""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Query, aliased

from ..exceptions import FolderNotFoundError
from ..models import File, Folder
from .base import BaseRepository


class FolderRepository(BaseRepository[Folder]):
    """Data access layer for the per-user folder tree."""

    model_class = Folder
    not_found_error = FolderNotFoundError

    def _with_counts(self, query: Query) -> Query:
        """Add active-file and child-folder counts as extra columns."""
        child = aliased(Folder)
        file_count = (
            select(func.count(File.id))
            .where(File.folder_id == Folder.id, File.deleted_at.is_(None))
            .correlate(Folder)
            .scalar_subquery()
        )
        subfolder_count = (
            select(func.count(child.id))
            .where(child.parent_id == Folder.id)
            .correlate(Folder)
            .scalar_subquery()
        )
        return query.add_columns(file_count.label("file_count"), subfolder_count.label("subfolder_count"))

    def list_with_counts(
        self, owner_id: str, parent_id: Optional[str] = None, include_all: bool = False
    ) -> List[Tuple[Folder, int, int]]:
        """Folders under *parent_id* (root when None), or every folder when *include_all*."""
        query = self._owned_query(owner_id)
        if not include_all:
            if parent_id is None:
                query = query.filter(Folder.parent_id.is_(None))
            else:
                query = query.filter(Folder.parent_id == parent_id)
        rows = self._with_counts(query).order_by(Folder.name.asc()).all()
        return [(folder, files or 0, subfolders or 0) for folder, files, subfolders in rows]

    def counts(self, folder_id: str, active_only: bool = True) -> Tuple[int, int]:
        """Return ``(files, subfolders)`` directly inside the folder."""
        file_query = self.db.query(func.count(File.id)).filter(File.folder_id == folder_id)
        if active_only:
            file_query = file_query.filter(File.deleted_at.is_(None))
        subfolders = self.db.query(func.count(Folder.id)).filter(Folder.parent_id == folder_id).scalar()
        return file_query.scalar() or 0, subfolders or 0

    def sibling_name_taken(
        self,
        owner_id: str,
        parent_id: Optional[str],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        query = self._owned_query(owner_id).filter(Folder.name == name)
        if parent_id is None:
            query = query.filter(Folder.parent_id.is_(None))
        else:
            query = query.filter(Folder.parent_id == parent_id)
        if exclude_id is not None:
            query = query.filter(Folder.id != exclude_id)
        return self.db.query(query.exists()).scalar()

    def subtree_ids(self, folder_id: str) -> List[str]:
        """Ids of the folder and all its descendants, parents before children."""
        ordered = [folder_id]
        frontier = [folder_id]
        while frontier:
            children = [
                fid for (fid,) in self.db.query(Folder.id).filter(Folder.parent_id.in_(frontier)).all()
            ]
            frontier = [fid for fid in children if fid not in ordered]
            ordered.extend(frontier)
        return ordered
