"""Folder API: per-user folder tree CRUD.

Single router for all folder operations. Delegates to FolderService (deep module).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.folder import (
    FolderCreate,
    FolderDeleteResponse,
    FolderDetailEnvelope,
    FolderEnvelope,
    FolderListResponse,
    FolderUpdate,
)
from ..services.blob_store import BlobStore, get_blob_store
from ..services.folder_service import FolderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folders", tags=["folders"])


@router.get("", response_model=FolderListResponse)
def list_folders(
    parent_id: Optional[str] = Query(None, alias="parentId"),
    include_all: bool = Query(False, alias="all", description="Every folder instead of one level"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    folders = FolderService(db).list_folders(auth.user_id, parent_id or None, include_all)
    return FolderListResponse(folders=folders)


@router.post("", response_model=FolderEnvelope, status_code=201)
def create_folder(
    body: FolderCreate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return FolderEnvelope(folder=FolderService(db).create_folder(auth.user_id, body))


@router.get("/{folder_id}", response_model=FolderDetailEnvelope)
def get_folder(folder_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    return FolderDetailEnvelope(folder=FolderService(db).get_folder(auth.user_id, folder_id))


@router.put("/{folder_id}", response_model=FolderEnvelope)
def update_folder(
    folder_id: str,
    body: FolderUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    """Rename, re-describe or move a folder (``parentId: null`` moves it to root)."""
    return FolderEnvelope(folder=FolderService(db).update_folder(auth.user_id, folder_id, body))


@router.delete("/{folder_id}", response_model=FolderDeleteResponse)
def delete_folder(
    folder_id: str,
    force: bool = Query(False, description="Delete all contents recursively"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
    blob_store: BlobStore = Depends(get_blob_store),
):
    """Delete a folder.

    Without ``force`` a folder with files (trashed ones included) or
    subfolders is refused with 409 and its counts.
    """
    return FolderService(db).delete_folder(auth.user_id, folder_id, force, blob_store)
