"""Tag API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.auth import AuthContext, require_auth
from ..database import get_db
from ..schemas.common import SuccessResponse
from ..schemas.tag import (
    TagCreate,
    TagDetailEnvelope,
    TagEnvelope,
    TagListResponse,
    TagUpdate,
)
from ..services.tag_service import TagService

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=TagListResponse, response_model_exclude_none=True)
def list_tags(
    search: Optional[str] = Query(None),
    stats: bool = Query(False, description="Order by usage and include recent files"),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return TagListResponse(tags=TagService(db).list_tags(auth.user_id, search=search, with_stats=stats))


@router.post("", response_model=TagEnvelope, status_code=201, response_model_exclude_none=True)
def create_tag(body: TagCreate, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    return TagEnvelope(tag=TagService(db).create_tag(auth.user_id, body))


@router.get("/{tag_id}", response_model=TagDetailEnvelope, response_model_exclude_none=True)
def get_tag(tag_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    return TagDetailEnvelope(tag=TagService(db).get_tag(auth.user_id, tag_id))


@router.put("/{tag_id}", response_model=TagEnvelope, response_model_exclude_none=True)
def update_tag(
    tag_id: str,
    body: TagUpdate,
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(require_auth),
):
    return TagEnvelope(tag=TagService(db).update_tag(auth.user_id, tag_id, body))


@router.delete("/{tag_id}", response_model=SuccessResponse)
def delete_tag(tag_id: str, db: Session = Depends(get_db), auth: AuthContext = Depends(require_auth)):
    TagService(db).delete_tag(auth.user_id, tag_id)
    return SuccessResponse()
