"""Tag service — per-user tag CRUD."""

import logging
import random
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import ConflictError
from ..models import Tag
from ..repositories.tag_repository import TagRepository
from ..schemas.tag import (
    TagCreate,
    TagDetailResponse,
    TagFileSummary,
    TagResponse,
    TagUpdate,
)

logger = logging.getLogger(__name__)

TAG_PALETTE = (
    "#3B82F6", "#EF4444", "#10B981", "#F59E0B", "#8B5CF6",
    "#EC4899", "#06B6D4", "#84CC16", "#F97316", "#6366F1",
)
RECENT_FILES_IN_LIST = 5
RECENT_FILES_IN_DETAIL = 10


def random_tag_color() -> str:
    return random.choice(TAG_PALETTE)


class TagService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = TagRepository(db)

    def list_tags(self, owner_id: str, search: Optional[str] = None, with_stats: bool = False) -> List[TagResponse]:
        """Tags by name, or by usage with a few recent files when *with_stats*."""
        rows = self.repo.list_with_counts(owner_id, search=search, by_usage=with_stats)
        responses = []
        for tag, count in rows:
            response = self._response(tag, count)
            if with_stats:
                response.recent_files = [
                    TagFileSummary.model_validate(f)
                    for f in self.repo.recent_files(tag.id, RECENT_FILES_IN_LIST)
                ]
            responses.append(response)
        return responses

    def create_tag(self, owner_id: str, data: TagCreate) -> TagResponse:
        if self.repo.get_by_name(owner_id, data.name) is not None:
            raise ConflictError("Tag already exists", details={"name": data.name})

        tag = Tag(
            name=data.name,
            color=data.color or random_tag_color(),
            description=data.description,
            user_id=owner_id,
        )
        self.db.add(tag)
        self.db.commit()
        self.db.refresh(tag)
        logger.info("Tag created", extra={"tag_id": tag.id, "tag_name": tag.name})
        return self._response(tag, 0)

    def get_tag(self, owner_id: str, tag_id: str) -> TagDetailResponse:
        tag = self.repo.get_owned(tag_id, owner_id)
        base = self._response(tag, self.repo.file_count(tag.id))
        return TagDetailResponse(
            **base.model_dump(),
            files=[
                TagFileSummary.model_validate(f)
                for f in self.repo.recent_files(tag.id, RECENT_FILES_IN_DETAIL)
            ],
        )

    def update_tag(self, owner_id: str, tag_id: str, data: TagUpdate) -> TagResponse:
        tag = self.repo.get_owned(tag_id, owner_id)
        fields = data.model_fields_set

        if data.name and data.name != tag.name:
            if self.repo.get_by_name(owner_id, data.name, exclude_id=tag.id) is not None:
                raise ConflictError("Tag name already exists", details={"name": data.name})
            tag.name = data.name
        if data.color:
            tag.color = data.color
        if "description" in fields:
            tag.description = data.description

        self.db.commit()
        self.db.refresh(tag)
        return self._response(tag, self.repo.file_count(tag.id))

    def delete_tag(self, owner_id: str, tag_id: str) -> None:
        """Delete a tag; its file links go with it (ON DELETE CASCADE)."""
        tag = self.repo.get_owned(tag_id, owner_id)
        self.db.delete(tag)
        self.db.commit()
        logger.info("Tag deleted", extra={"tag_id": tag_id})

    @staticmethod
    def _response(tag: Tag, file_count: int) -> TagResponse:
        return TagResponse(
            id=tag.id,
            name=tag.name,
            color=tag.color,
            description=tag.description,
            created_at=tag.created_at,
            updated_at=tag.updated_at,
            file_count=file_count,
        )
