"""File service — listing, single-file updates, deletes and tag assignment."""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.orm import Session

from ..exceptions import ConflictError, FolderNotFoundError, TagNotFoundError
from ..models import File, Tag
from ..repositories.base import lock_owner
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..repositories.tag_repository import TagRepository
from ..schemas.file import FileListResponse, FileResponse, FileUpdate
from .blob_store import BlobStore, delete_blobs
from .file_query import FileQuery, FileQueryParams, build_file_filters, listing_order
from .naming import check_file_name

logger = logging.getLogger(__name__)


class FileService:
    def __init__(self, db: Session):
        self.db = db
        self.files = FileRepository(db)
        self.folders = FolderRepository(db)
        self.tags = TagRepository(db)

    def list_files(self, owner_id: str, params: FileQueryParams) -> FileListResponse:
        """One page of the caller's active files in a folder (root by default)."""
        criteria = build_file_filters(owner_id, params, folder_scope="root")
        query = FileQuery(self.db, criteria, listing_order(params.sort, params.order), params.page, params.limit)
        total, files = query.execute()
        return FileListResponse(
            files=[FileResponse.from_file(f) for f in files],
            pagination=query.pagination(total),
        )

    def get_file(self, owner_id: str, file_id: str) -> File:
        """Owned file, trashed ones included."""
        return self.files.get_owned_any_state(file_id, owner_id)

    def update_file(self, owner_id: str, file_id: str, data: FileUpdate) -> File:
        """Rename, re-describe or move one active file.

        ``originalName`` wins over ``filename`` for the display name; a bare
        ``filename`` renames both.
        """
        file = self.files.get_owned(file_id, owner_id)
        lock_owner(self.db, owner_id)

        fields = data.model_fields_set
        target_folder = data.folder_id if "folder_id" in fields else file.folder_id
        if target_folder != file.folder_id and target_folder is not None:
            if self.folders.get_owned_optional(target_folder, owner_id) is None:
                raise FolderNotFoundError(target_folder, "Target folder not found")

        new_display = data.original_name or data.filename or file.original_name
        if new_display != file.original_name:
            check_file_name(new_display, field="originalName" if data.original_name else "filename")
        if data.filename:
            check_file_name(data.filename, field="filename")

        if (new_display != file.original_name or target_folder != file.folder_id) and self.files.name_taken(
            owner_id, target_folder, new_display, exclude_id=file.id
        ):
            raise ConflictError("A file with this name already exists in the target location")

        file.original_name = new_display
        if data.filename:
            file.filename = data.filename
        if "description" in fields:
            file.description = data.description
        file.folder_id = target_folder

        self.db.commit()
        logger.info("File updated", extra={"file_id": file.id, "fields": sorted(fields)})
        return self.files.get_owned_any_state(file.id, owner_id)

    def delete_file(self, owner_id: str, file_id: str, permanent: bool, blob_store: BlobStore) -> None:
        """Trash a file, or remove it for good (trashed files included).

        The blob goes only when no other row (e.g. a copy) still points at it,
        and only after the row delete has committed.
        """
        file = self.files.get_owned_any_state(file_id, owner_id)

        if not permanent:
            if file.deleted_at is None:
                file.deleted_at = datetime.now(timezone.utc)
                self.db.commit()
            return

        blob_id = file.blob_id
        self.db.delete(file)
        self.db.flush()
        orphaned = self.files.blob_reference_count(blob_id) == 0
        self.db.commit()
        logger.info("File permanently deleted", extra={"file_id": file_id, "blob_released": orphaned})

        if orphaned and blob_store.is_configured:
            delete_blobs(blob_store, [blob_id])

    def get_tags(self, owner_id: str, file_id: str) -> List[Tag]:
        return list(self.files.get_owned_any_state(file_id, owner_id).tags)

    def replace_tags(self, owner_id: str, file_id: str, tag_ids: List[str]) -> File:
        """Swap the file's whole tag set in one transaction."""
        file = self.files.get_owned_any_state(file_id, owner_id)
        wanted = list(dict.fromkeys(tag_ids))
        owned = self.tags.find_owned(wanted, owner_id)
        if len(owned) != len(wanted):
            missing = sorted(set(wanted) - {t.id for t in owned})
            raise TagNotFoundError(missing[0], "Some tags not found or access denied")

        self.files.replace_tags(file.id, wanted)
        self.db.commit()
        self.db.expire(file)
        return self.files.get_owned_any_state(file.id, owner_id)

    def clear_tags(self, owner_id: str, file_id: str) -> None:
        file = self.files.get_owned_any_state(file_id, owner_id)
        self.files.replace_tags(file.id, [])
        self.db.commit()
