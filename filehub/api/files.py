"""File API: listing, single-file CRUD, tag assignment and bulk operations.

Handlers are thin; the services own validation, ownership checks and commits.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.bulk import BulkOperationRequest, BulkOperationResponse
from ..schemas.common import SuccessResponse
from ..schemas.file import (
    FileEnvelope,
    FileListResponse,
    FileResponse,
    FileTagsResponse,
    FileTagsUpdate,
    FileUpdate,
    TagSummary,
)
from ..services.blob_store import BlobStore, get_blob_store
from ..services.bulk_operations import BulkOperationExecutor
from ..services.file_query import FileQueryParams
from ..services.file_service import FileService
from .params import file_list_params

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("", response_model=FileListResponse)
def list_files(
    params: FileQueryParams = Depends(file_list_params),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """List the caller's active files in one folder (root when ``folderId`` is absent)."""
    return FileService(db).list_files(auth.user_id, params)


@router.post(
    "/bulk-operations",
    response_model=BulkOperationResponse,
    response_model_exclude_none=True,
)
def bulk_operations(
    body: BulkOperationRequest,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Apply delete, move, copy or rename to many files.

    Every id must be an active file of the caller or nothing is processed
    (403). After that gate, items fail independently and are reported per id.
    """
    results = BulkOperationExecutor(db, blob_store=blob_store).execute(auth.user_id, body)
    return BulkOperationResponse(results=results)


@router.get("/{file_id}", response_model=FileEnvelope)
def get_file(file_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    file = FileService(db).get_file(auth.user_id, file_id)
    return FileEnvelope(file=FileResponse.from_file(file))


@router.put("/{file_id}", response_model=FileEnvelope)
def update_file(
    file_id: str,
    body: FileUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    file = FileService(db).update_file(auth.user_id, file_id, body)
    return FileEnvelope(file=FileResponse.from_file(file))


@router.delete("/{file_id}", response_model=SuccessResponse)
def delete_file(
    file_id: str,
    permanent: bool = Query(False, description="Remove the row and its blob instead of trashing"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    blob_store: BlobStore = Depends(get_blob_store),
):
    FileService(db).delete_file(auth.user_id, file_id, permanent, blob_store)
    return SuccessResponse()


# -- Tags on a file ------------------------------------------------------------

@router.get("/{file_id}/tags", response_model=FileTagsResponse)
def get_file_tags(file_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    tags = FileService(db).get_tags(auth.user_id, file_id)
    return FileTagsResponse(tags=[TagSummary.model_validate(t) for t in tags])


@router.post("/{file_id}/tags", response_model=FileTagsResponse)
def replace_file_tags(
    file_id: str,
    body: FileTagsUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Replace the file's whole tag set."""
    file = FileService(db).replace_tags(auth.user_id, file_id, body.tag_ids)
    return FileTagsResponse(tags=[TagSummary.model_validate(t) for t in file.tags])


@router.delete("/{file_id}/tags", response_model=SuccessResponse)
def clear_file_tags(file_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    FileService(db).clear_tags(auth.user_id, file_id)
    return SuccessResponse()
