"""Bulk file operations: delete, move, copy and rename.

Processing happens in two phases:

1. Whole-request checks. Structural validation (400), then the ownership
   gate: every requested id must be an active file of the caller or nothing
   is processed (403). A target folder is resolved once (404).
2. A per-item loop. Each file runs inside its own SAVEPOINT; a failure is
   rolled back, recorded in that item's result and the loop moves on.

Blob deletions for permanent deletes are issued after the database commit,
in parallel and best-effort; database state is authoritative.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from ..exceptions import (
    ConflictError,
    FileHubException,
    FolderNotFoundError,
    ForbiddenError,
    ValidationError,
)
from ..models import File, Folder
from ..repositories.base import lock_owner
from ..repositories.file_repository import FileRepository
from ..repositories.folder_repository import FolderRepository
from ..schemas.bulk import BulkItemResult, BulkOperation, BulkOperationRequest
from .blob_store import BlobStore, delete_blobs
from .naming import MAX_COPY_ATTEMPTS, check_file_name, copy_name, render_rename_pattern

logger = logging.getLogger(__name__)


class _BatchState:
    """Per-request context handed to the item handlers."""

    def __init__(self, owner_id: str, request: BulkOperationRequest, target: Optional[Folder]):
        self.owner_id = owner_id
        self.request = request
        self.target = target
        self.released_blobs: List[str] = []


class BulkOperationExecutor:
    """Applies one operation to a list of the caller's files."""

    def __init__(self, db: Session, blob_store: Optional[BlobStore] = None, max_workers: Optional[int] = None):
        self.db = db
        self.blob_store = blob_store
        self.max_workers = max_workers
        self.files = FileRepository(db)
        self.folders = FolderRepository(db)
        self._handlers: Dict[BulkOperation, Callable[[_BatchState, File, int], BulkItemResult]] = {
            BulkOperation.DELETE: self._delete,
            BulkOperation.MOVE: self._move,
            BulkOperation.COPY: self._copy,
            BulkOperation.RENAME: self._rename,
        }

    def execute(self, owner_id: str, request: BulkOperationRequest) -> List[BulkItemResult]:
        """Run the batch and return one result per distinct requested id, in request order."""
        self._validate(request)

        file_ids = list(dict.fromkeys(request.file_ids))
        files = self._gate(owner_id, file_ids)

        if request.operation != BulkOperation.DELETE:
            lock_owner(self.db, owner_id)

        state = _BatchState(owner_id, request, self._resolve_target(owner_id, request))
        handler = self._handlers[request.operation]

        results: List[BulkItemResult] = []
        for index, file in enumerate(files, start=1):
            savepoint = self.db.begin_nested()
            try:
                result = handler(state, file, index)
                self.db.flush()
                savepoint.commit()
            except Exception as e:
                savepoint.rollback()
                result = BulkItemResult(id=file.id, success=False, error=self._describe(request.operation, e))
                if not isinstance(e, FileHubException):
                    logger.warning(
                        "Bulk %s failed for %s: %s", request.operation.value, file.id, e, exc_info=True
                    )
            results.append(result)

        orphaned = self._unreferenced(state.released_blobs)
        self.db.commit()

        succeeded = sum(1 for r in results if r.success)
        logger.info(
            "Bulk operation finished",
            extra={
                "operation": request.operation.value,
                "owner_id": owner_id,
                "total": len(results),
                "succeeded": succeeded,
                "failed": len(results) - succeeded,
            },
        )

        if orphaned:
            self._release_blobs(orphaned)
        return results

    # -- whole-request checks -------------------------------------------------

    @staticmethod
    def _validate(request: BulkOperationRequest) -> None:
        if request.operation == BulkOperation.MOVE and not request.has_target_folder:
            raise ValidationError(
                "Target folder ID required for move operation (use null for root)",
                field="targetFolderId",
            )
        if request.operation == BulkOperation.RENAME and not (request.rename_pattern or "").strip():
            raise ValidationError("Rename pattern required", field="renamePattern")

    def _gate(self, owner_id: str, file_ids: List[str]) -> List[File]:
        """All ids must be the caller's active files; returns them in request order."""
        found = {f.id: f for f in self.files.find_owned(file_ids, owner_id)}
        if len(found) != len(file_ids):
            logger.warning(
                "Bulk operation rejected by ownership check",
                extra={"owner_id": owner_id, "requested": len(file_ids), "owned": len(found)},
            )
            raise ForbiddenError("Some files not found or unauthorized")
        return [found[fid] for fid in file_ids]

    def _resolve_target(self, owner_id: str, request: BulkOperationRequest) -> Optional[Folder]:
        if request.operation not in (BulkOperation.MOVE, BulkOperation.COPY):
            return None
        if request.target_folder_id is None:
            return None
        folder = self.folders.get_owned_optional(request.target_folder_id, owner_id)
        if folder is None:
            raise FolderNotFoundError(request.target_folder_id, "Target folder not found")
        return folder

    # -- item handlers --------------------------------------------------------

    def _delete(self, state: _BatchState, file: File, index: int) -> BulkItemResult:
        if state.request.permanent:
            state.released_blobs.append(file.blob_id)
            self.db.delete(file)
        else:
            file.deleted_at = datetime.now(timezone.utc)
        return BulkItemResult(id=file.id, success=True)

    def _move(self, state: _BatchState, file: File, index: int) -> BulkItemResult:
        target_id = state.target.id if state.target else None
        if self.files.name_taken(state.owner_id, target_id, file.original_name, exclude_id=file.id):
            raise ConflictError(
                f'A file named "{file.original_name}" already exists in the target folder'
            )
        file.folder_id = target_id
        return BulkItemResult(id=file.id, success=True)

    def _copy(self, state: _BatchState, file: File, index: int) -> BulkItemResult:
        destination = state.target.id if state.target else file.folder_id

        for attempt in range(1, MAX_COPY_ATTEMPTS + 1):
            new_name = copy_name(file.original_name, attempt)
            if not self.files.name_taken(state.owner_id, destination, new_name):
                break
        else:
            raise ConflictError(f'No free copy name for "{file.original_name}"')

        duplicate = File(
            filename=copy_name(file.filename, attempt),
            original_name=new_name,
            mime_type=file.mime_type,
            size=file.size,
            blob_id=file.blob_id,
            blob_url=file.blob_url,
            description=file.description,
            folder_id=destination,
            user_id=state.owner_id,
        )
        self.db.add(duplicate)
        self.db.flush()
        return BulkItemResult(id=file.id, success=True, copy_id=duplicate.id, new_name=new_name)

    def _rename(self, state: _BatchState, file: File, index: int) -> BulkItemResult:
        new_name = render_rename_pattern(
            state.request.rename_pattern, index, file.original_name, file.filename
        )
        check_file_name(new_name, field="renamePattern")
        if self.files.name_taken(state.owner_id, file.folder_id, new_name, exclude_id=file.id):
            raise ConflictError(f'Name "{new_name}" already exists')
        file.original_name = new_name
        file.filename = new_name
        return BulkItemResult(id=file.id, success=True, new_name=new_name)

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _describe(operation: BulkOperation, error: Exception) -> str:
        if isinstance(error, FileHubException):
            return error.message
        return f"{operation.value.capitalize()} failed"

    def _unreferenced(self, blob_ids: List[str]) -> List[str]:
        """Blobs released by this batch that no remaining row points at."""
        return [
            blob_id for blob_id in dict.fromkeys(blob_ids)
            if self.files.blob_reference_count(blob_id) == 0
        ]

    def _release_blobs(self, blob_ids: List[str]) -> None:
        if self.blob_store is None or not self.blob_store.is_configured:
            logger.warning("Blob store not configured; %d blobs left in place", len(blob_ids))
            return
        failed = delete_blobs(self.blob_store, blob_ids, self.max_workers)
        if failed:
            logger.warning("Some blobs could not be deleted", extra={"blob_ids": failed})
