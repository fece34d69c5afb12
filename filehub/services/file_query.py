"""Faceted file filtering shared by the listing and search endpoints.

``build_file_filters`` turns a parsed facet set into SQLAlchemy criteria;
``FileQuery`` runs the count and the ordered page fetch. The two endpoints
differ in three ways, all expressed as keyword arguments:

    folder_scope    listing: absent folder id means root (``IS NULL``)
                    search:  absent folder id means any folder
    text_fields     listing: original name only, whole query string
                    search:  every whitespace-separated term must match the
                             original name, stored name, description or a
                             tag name
    document_types  listing: ``application/*`` or ``text/*``
                    search:  an explicit allow-list of document MIME types
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models import File, Tag
from ..repositories.file_repository import with_summaries
from ..schemas.common import Pagination

logger = logging.getLogger(__name__)

__all__ = [
    "FileType",
    "SortField",
    "SearchSort",
    "SortOrder",
    "FileFacets",
    "FileQueryParams",
    "SearchQueryParams",
    "SEARCH_DOCUMENT_TYPES",
    "TEXT_FIELDS_LISTING",
    "TEXT_FIELDS_SEARCH",
    "build_file_filters",
    "listing_order",
    "search_order",
    "FileQuery",
]

SEARCH_DOCUMENT_TYPES = (
    "application/pdf",
    "text/plain",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
)

TEXT_FIELDS_LISTING = ("original_name",)
TEXT_FIELDS_SEARCH = ("original_name", "filename", "description", "tags")


class FileType(str, Enum):
    ALL = "all"
    IMAGE = "image"
    VIDEO = "video"
    DOCUMENT = "document"


class SortField(str, Enum):
    NAME = "name"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    SIZE = "size"


class SearchSort(str, Enum):
    RELEVANCE = "relevance"
    NAME = "name"
    CREATED_AT = "createdAt"
    SIZE = "size"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_COLUMNS = {
    "name": File.original_name,
    "createdAt": File.created_at,
    "updatedAt": File.updated_at,
    "size": File.size,
}


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FileFacets(BaseModel):
    """Facet inputs common to listing and search. All optional."""

    folder_id: Optional[str] = None
    search: Optional[str] = None
    type: FileType = FileType.ALL
    tags: List[str] = []
    min_size: Optional[int] = Field(None, ge=0)
    max_size: Optional[int] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator('folder_id', 'search')
    @classmethod
    def blank_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, v):
        """Accept ``"a,b"`` as well as repeated values; names are lowercase."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        names = []
        for item in v:
            names.extend(part.strip().lower() for part in str(item).split(',') if part.strip())
        return list(dict.fromkeys(names))

    @field_validator('start_date', 'end_date')
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @model_validator(mode='after')
    def check_ranges(self):
        if self.min_size is not None and self.max_size is not None and self.min_size > self.max_size:
            raise ValueError("minSize must not exceed maxSize")
        if self.start_date is not None and self.end_date is not None and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    def describe(self) -> dict:
        """Facet set as plain JSON-friendly values (echoed and stored in history)."""
        return {
            "type": self.type.value,
            "folderId": self.folder_id,
            "tags": self.tags,
            "minSize": self.min_size,
            "maxSize": self.max_size,
            "startDate": self.start_date.isoformat() if self.start_date else None,
            "endDate": self.end_date.isoformat() if self.end_date else None,
        }


class FileQueryParams(FileFacets):
    """Listing parameters: facets plus sort and pagination."""

    sort: SortField = SortField.CREATED_AT
    order: SortOrder = SortOrder.DESC
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)


class SearchQueryParams(FileFacets):
    """Search parameters. ``search`` carries the ``q`` text."""

    sort_by: SearchSort = SearchSort.RELEVANCE
    sort_order: SortOrder = SortOrder.DESC
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=50)

    @property
    def terms(self) -> List[str]:
        return self.search.lower().split() if self.search else []


def _contains(column, term: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


def _text_criterion(term: str, text_fields: Sequence[str]):
    clauses = []
    for name in text_fields:
        if name == "tags":
            clauses.append(File.tags.any(_contains(Tag.name, term)))
        else:
            clauses.append(_contains(getattr(File, name), term))
    return or_(*clauses) if len(clauses) > 1 else clauses[0]


def build_file_filters(
    owner_id: str,
    facets: FileFacets,
    *,
    folder_scope: str = "root",
    text_fields: Sequence[str] = TEXT_FIELDS_LISTING,
    document_types: Optional[Sequence[str]] = None,
    split_terms: bool = False,
) -> list:
    """Translate a facet set into a list of criteria to AND together.

    Args:
        owner_id: Only this user's files match.
        facets: Parsed facet values.
        folder_scope: ``"root"`` treats a missing folder id as the root
            folder; ``"any"`` leaves the folder unconstrained.
        text_fields: Columns (plus ``"tags"``) searched by the free text.
        document_types: Explicit MIME allow-list for the document type;
            ``None`` means any ``application/*`` or ``text/*`` type.
        split_terms: Split the free text on whitespace and require every
            term to match; otherwise the whole string is one term.
    """
    criteria = [File.user_id == owner_id, File.deleted_at.is_(None)]

    if facets.folder_id is not None:
        criteria.append(File.folder_id == facets.folder_id)
    elif folder_scope == "root":
        criteria.append(File.folder_id.is_(None))

    if facets.type == FileType.IMAGE:
        criteria.append(File.mime_type.like("image/%"))
    elif facets.type == FileType.VIDEO:
        criteria.append(File.mime_type.like("video/%"))
    elif facets.type == FileType.DOCUMENT:
        if document_types is not None:
            criteria.append(File.mime_type.in_(list(document_types)))
        else:
            criteria.append(or_(File.mime_type.like("application/%"), File.mime_type.like("text/%")))

    if facets.tags:
        criteria.append(File.tags.any(Tag.name.in_(facets.tags)))

    if facets.min_size is not None:
        criteria.append(File.size >= facets.min_size)
    if facets.max_size is not None:
        criteria.append(File.size <= facets.max_size)

    if facets.start_date is not None:
        criteria.append(File.created_at >= facets.start_date)
    if facets.end_date is not None:
        criteria.append(File.created_at <= facets.end_date)

    if facets.search:
        terms = facets.search.split() if split_terms else [facets.search]
        for term in terms:
            criteria.append(_text_criterion(term, text_fields))

    return criteria


def listing_order(sort: SortField, order: SortOrder) -> list:
    column = _SORT_COLUMNS[sort.value]
    primary = column.asc() if order == SortOrder.ASC else column.desc()
    return [primary, File.id.asc()]


def search_order(sort_by: SearchSort, sort_order: SortOrder) -> list:
    """Relevance pages are fetched newest first, then by name."""
    if sort_by == SearchSort.RELEVANCE:
        return [File.created_at.desc(), File.original_name.asc(), File.id.asc()]
    column = _SORT_COLUMNS[sort_by.value]
    primary = column.asc() if sort_order == SortOrder.ASC else column.desc()
    return [primary, File.id.asc()]


class FileQuery:
    """Count plus one ordered page of files matching the criteria."""

    def __init__(self, db: Session, criteria: list, order_by: list, page: int, limit: int):
        self.db = db
        self.criteria = criteria
        self.order_by = order_by
        self.page = page
        self.limit = limit

    def count(self) -> int:
        return self.db.query(func.count(File.id)).filter(*self.criteria).scalar() or 0

    def fetch(self) -> List[File]:
        return (
            with_summaries(self.db.query(File))
            .filter(*self.criteria)
            .order_by(*self.order_by)
            .offset((self.page - 1) * self.limit)
            .limit(self.limit)
            .all()
        )

    def execute(self) -> tuple[int, List[File]]:
        total = self.count()
        files = self.fetch() if total else []
        logger.debug(
            "File query executed",
            extra={"total": total, "page": self.page, "limit": self.limit, "returned": len(files)},
        )
        return total, files

    def pagination(self, total: int) -> Pagination:
        return Pagination.build(self.page, self.limit, total)
