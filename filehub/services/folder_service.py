"""Folder operations: CRUD, re-parenting and recursive delete.

The public interface is intentionally narrow; callers never walk the tree or
compute counts themselves.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import ConflictError, FolderNotEmptyError, FolderNotFoundError, ValidationError
from ..models import File, Folder
from ..repositories.base import lock_owner
from ..repositories.file_repository import FileRepository, with_summaries
from ..repositories.folder_repository import FolderRepository
from ..schemas.file import FileResponse, FolderSummary
from ..schemas.folder import (
    FolderCreate,
    FolderDeleteResponse,
    FolderDetailResponse,
    FolderResponse,
    FolderUpdate,
)
from .blob_store import BlobStore, delete_blobs
from .naming import check_folder_name

logger = logging.getLogger(__name__)


class FolderService:
    """All folder operations behind a simple interface.

    Public methods:
        list_folders   -- children of a parent (root by default) or every folder
        create_folder  -- sibling names are unique per owner
        get_folder     -- folder with parent, children and active files
        update_folder  -- rename, re-describe, re-parent (no cycles)
        delete_folder  -- refuses non-empty folders unless forced
    """

    def __init__(self, db: Session):
        self.db = db
        self.folder_repo = FolderRepository(db)
        self.file_repo = FileRepository(db)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def list_folders(
        self, owner_id: str, parent_id: Optional[str] = None, include_all: bool = False
    ) -> List[FolderResponse]:
        rows = self.folder_repo.list_with_counts(owner_id, parent_id, include_all)
        return [self._response(folder, files, subfolders) for folder, files, subfolders in rows]

    def create_folder(self, owner_id: str, data: FolderCreate) -> FolderResponse:
        check_folder_name(data.name)

        if data.parent_id is not None and self.folder_repo.get_owned_optional(data.parent_id, owner_id) is None:
            raise FolderNotFoundError(data.parent_id, "Parent folder not found")

        lock_owner(self.db, owner_id)
        if self.folder_repo.sibling_name_taken(owner_id, data.parent_id, data.name):
            raise ConflictError("Folder name already exists", details={"name": data.name})

        folder = Folder(
            name=data.name,
            description=data.description,
            parent_id=data.parent_id,
            user_id=owner_id,
        )
        self.db.add(folder)
        self.db.commit()
        self.db.refresh(folder)
        logger.info("Folder created", extra={"folder_id": folder.id, "parent_id": folder.parent_id})
        return self._response(folder, 0, 0)

    def get_folder(self, owner_id: str, folder_id: str) -> FolderDetailResponse:
        folder = self.folder_repo.get_owned(folder_id, owner_id)
        files, subfolders = self.folder_repo.counts(folder.id)

        children = self.list_folders(owner_id, parent_id=folder.id)
        active_files = (
            with_summaries(self.db.query(File))
            .filter(File.folder_id == folder.id, File.deleted_at.is_(None))
            .order_by(File.original_name.asc())
            .all()
        )
        base = self._response(folder, files, subfolders)
        return FolderDetailResponse(
            **base.model_dump(),
            parent=FolderSummary.model_validate(folder.parent) if folder.parent else None,
            children=children,
            files=[FileResponse.from_file(f) for f in active_files],
        )

    def update_folder(self, owner_id: str, folder_id: str, data: FolderUpdate) -> FolderResponse:
        """Apply a partial update.

        Re-parenting checks the whole subtree, so a folder can never be moved
        under itself or any of its descendants.
        """
        folder = self.folder_repo.get_owned(folder_id, owner_id)
        fields = data.model_fields_set

        new_parent = data.parent_id if "parent_id" in fields else folder.parent_id
        if new_parent != folder.parent_id and new_parent is not None:
            if self.folder_repo.get_owned_optional(new_parent, owner_id) is None:
                raise FolderNotFoundError(new_parent, "Parent folder not found")
            if new_parent in self.folder_repo.subtree_ids(folder.id):
                raise ValidationError(
                    "Cannot move folder into itself or one of its subfolders", field="parentId"
                )

        new_name = data.name or folder.name
        if new_name != folder.name:
            check_folder_name(new_name)

        lock_owner(self.db, owner_id)
        if (new_name != folder.name or new_parent != folder.parent_id) and self.folder_repo.sibling_name_taken(
            owner_id, new_parent, new_name, exclude_id=folder.id
        ):
            raise ConflictError("Folder name already exists in target location", details={"name": new_name})

        folder.name = new_name
        folder.parent_id = new_parent
        if "description" in fields:
            folder.description = data.description

        self.db.commit()
        self.db.refresh(folder)
        logger.info("Folder updated", extra={"folder_id": folder.id, "fields": sorted(fields)})
        files, subfolders = self.folder_repo.counts(folder.id)
        return self._response(folder, files, subfolders)

    def delete_folder(
        self, owner_id: str, folder_id: str, force: bool, blob_store: Optional[BlobStore] = None
    ) -> FolderDeleteResponse:
        """Delete a folder.

        Without *force* the folder must be empty; trashed files count as
        content. With *force* the whole subtree (files first, then folders
        deepest first) is removed in one transaction, and blobs nothing else
        references are deleted best-effort afterwards.
        """
        folder = self.folder_repo.get_owned(folder_id, owner_id)
        files, subfolders = self.folder_repo.counts(folder.id, active_only=False)
        if (files or subfolders) and not force:
            raise FolderNotEmptyError(folder.id, files, subfolders)

        subtree = self.folder_repo.subtree_ids(folder.id)
        doomed = self.db.query(File.id, File.blob_id).filter(File.folder_id.in_(subtree)).all()
        blob_ids = list(dict.fromkeys(blob_id for _, blob_id in doomed))

        if doomed:
            self.db.query(File).filter(File.id.in_([fid for fid, _ in doomed])).delete(
                synchronize_session=False
            )
        for fid in reversed(subtree):
            self.db.query(Folder).filter(Folder.id == fid).delete(synchronize_session=False)
        self.db.flush()

        orphaned = [b for b in blob_ids if self.file_repo.blob_reference_count(b) == 0]
        self.db.commit()
        self.db.expire_all()

        logger.info(
            "Folder deleted",
            extra={"folder_id": folder_id, "files": len(doomed), "folders": len(subtree), "force": force},
        )

        if orphaned and blob_store is not None and blob_store.is_configured:
            delete_blobs(blob_store, orphaned)

        return FolderDeleteResponse(success=True, deleted_files=len(doomed), deleted_folders=len(subtree))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _response(folder: Folder, files: int, subfolders: int) -> FolderResponse:
        return FolderResponse(
            id=folder.id,
            name=folder.name,
            description=folder.description,
            parent_id=folder.parent_id,
            user_id=folder.user_id,
            created_at=folder.created_at,
            updated_at=folder.updated_at,
            file_count=files,
            subfolder_count=subfolders,
        )
