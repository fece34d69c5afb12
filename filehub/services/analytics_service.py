"""Per-user analytics: the caller's totals, type mix, upload trend and top items.

Reuses the admin aggregate queries narrowed to one owner and fans them out
the same way, one session per query.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Dict, List

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, sessionmaker

from ..database import SessionLocal
from ..models import File, Folder
from ..schemas.analytics import (
    AnalyticsOverview,
    AnalyticsOverviewResponse,
    FileAnalyticsResponse,
    FolderUsage,
    LargestFile,
    SizeDistribution,
    TypeUsage,
)
from .admin_service import (
    _active_files,
    _count_files,
    _count_folders,
    _count_tags,
    _popular_tags,
    _storage_used,
    _upload_trend,
    run_parallel,
)

logger = logging.getLogger(__name__)

TOP_FOLDERS = 10
LARGEST_FILES = 10

MB = 1024 * 1024
SIZE_BUCKETS = (("small", 1 * MB), ("medium", 10 * MB), ("large", 100 * MB))


class AnalyticsTimeframe(str, Enum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"


class AnalyticsType(str, Enum):
    OVERVIEW = "overview"
    FILES = "files"


TIMEFRAME_DAYS = {
    AnalyticsTimeframe.WEEK: 7,
    AnalyticsTimeframe.MONTH: 30,
    AnalyticsTimeframe.QUARTER: 90,
    AnalyticsTimeframe.YEAR: 365,
}


def type_category(mime_type: str) -> str:
    mime_type = mime_type or ""
    if mime_type.startswith("image/"):
        return "images"
    if mime_type.startswith("video/"):
        return "videos"
    if mime_type == "application/pdf":
        return "pdf"
    if mime_type.startswith("application/") or mime_type.startswith("text/"):
        return "documents"
    return "other"


def size_bucket(size: int) -> str:
    for name, limit in SIZE_BUCKETS:
        if size < limit:
            return name
    return "huge"


def extension_of(name: str) -> str:
    """Lowercase extension without the dot; ``"none"`` when there is none."""
    stem, dot, ext = (name or "").rpartition(".")
    if not dot or not stem or not ext:
        return "none"
    return ext.lower()


# -- owner-scoped queries ------------------------------------------------------

def _file_types(db: Session, owner_id: str) -> Dict[str, TypeUsage]:
    rows = (
        _active_files(db.query(File.mime_type, func.count(File.id), func.sum(File.size)), owner_id)
        .group_by(File.mime_type)
        .all()
    )
    usage: Dict[str, TypeUsage] = {}
    for mime_type, count, size in rows:
        entry = usage.setdefault(type_category(mime_type), TypeUsage())
        entry.count += count
        entry.size += int(size or 0)
    return usage


def _top_folders(db: Session, owner_id: str) -> List[FolderUsage]:
    count = func.count(File.id).label("file_count")
    rows = (
        db.query(Folder, count)
        .outerjoin(File, and_(File.folder_id == Folder.id, File.deleted_at.is_(None)))
        .filter(Folder.user_id == owner_id)
        .group_by(Folder.id)
        .order_by(count.desc(), Folder.name.asc())
        .limit(TOP_FOLDERS)
        .all()
    )
    return [FolderUsage(id=f.id, name=f.name, file_count=n or 0) for f, n in rows]


def _size_distribution(db: Session, owner_id: str) -> SizeDistribution:
    distribution = SizeDistribution()
    for (size,) in _active_files(db.query(File.size), owner_id).all():
        bucket = size_bucket(size or 0)
        setattr(distribution, bucket, getattr(distribution, bucket) + 1)
    return distribution


def _extensions(db: Session, owner_id: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for (name,) in _active_files(db.query(File.original_name), owner_id).all():
        ext = extension_of(name)
        counts[ext] = counts.get(ext, 0) + 1
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def _largest_files(db: Session, owner_id: str) -> List[LargestFile]:
    rows = (
        _active_files(db.query(File), owner_id)
        .order_by(File.size.desc(), File.created_at.desc(), File.id.asc())
        .limit(LARGEST_FILES)
        .all()
    )
    return [LargestFile.model_validate(f) for f in rows]


class AnalyticsService:
    """Analytics over the calling user's own content."""

    def __init__(self, db: Session, session_factory: sessionmaker = SessionLocal):
        self.db = db
        self.session_factory = session_factory

    def overview(
        self, owner_id: str, timeframe: AnalyticsTimeframe = AnalyticsTimeframe.WEEK
    ) -> AnalyticsOverviewResponse:
        now = datetime.now(timezone.utc)
        days = TIMEFRAME_DAYS[timeframe]
        since = now - timedelta(days=days)

        results = run_parallel(self.session_factory, {
            "total_files": lambda db: _count_files(db, owner_id=owner_id),
            "total_folders": lambda db: _count_folders(db, owner_id=owner_id),
            "total_tags": lambda db: _count_tags(db, owner_id=owner_id),
            "storage_used": lambda db: _storage_used(db, owner_id=owner_id),
            "recent_uploads": lambda db: _count_files(db, since, owner_id=owner_id),
            "file_types": lambda db: _file_types(db, owner_id),
            "trend": lambda db: _upload_trend(db, now, days=days, owner_id=owner_id),
            "top_tags": lambda db: _popular_tags(db, owner_id=owner_id),
            "top_folders": lambda db: _top_folders(db, owner_id),
        })
        logger.debug("Analytics overview built", extra={"user_id": owner_id, "timeframe": timeframe.value})

        return AnalyticsOverviewResponse(
            timeframe=timeframe.value,
            overview=AnalyticsOverview(
                total_files=results["total_files"],
                total_folders=results["total_folders"],
                total_tags=results["total_tags"],
                storage_used=results["storage_used"],
                recent_uploads=results["recent_uploads"],
            ),
            file_types=results["file_types"],
            upload_trend=results["trend"],
            top_tags=results["top_tags"],
            top_folders=results["top_folders"],
        )

    def files(
        self, owner_id: str, timeframe: AnalyticsTimeframe = AnalyticsTimeframe.WEEK
    ) -> FileAnalyticsResponse:
        now = datetime.now(timezone.utc)
        days = TIMEFRAME_DAYS[timeframe]

        results = run_parallel(self.session_factory, {
            "timeline": lambda db: _upload_trend(db, now, days=days, owner_id=owner_id),
            "sizes": lambda db: _size_distribution(db, owner_id),
            "extensions": lambda db: _extensions(db, owner_id),
            "largest": lambda db: _largest_files(db, owner_id),
        })

        return FileAnalyticsResponse(
            timeframe=timeframe.value,
            timeline=results["timeline"],
            size_distribution=results["sizes"],
            extensions=results["extensions"],
            largest_files=results["largest"],
        )
