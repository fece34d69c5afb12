"""Admin service — system-wide statistics and user management.

Statistics are independent aggregate queries; they are fanned out over a
thread pool, each worker with its own session, and gathered into one
response.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, sessionmaker

from ..database import SessionLocal
from ..models import File, FileTag, Folder, Tag, User
from ..schemas.admin import (
    AdminStatsResponse,
    AdminUserListResponse,
    AdminUserResponse,
    PopularTag,
    StatsCharts,
    StatsOverview,
    TopUser,
    TypeCount,
    UploadTrendPoint,
)
from ..schemas.common import Pagination
from . import auth_service
from .blob_store import BlobStore, delete_blobs

logger = logging.getLogger(__name__)

TREND_DAYS = 7
TOP_USERS = 5
POPULAR_TAGS = 10
TOP_MIME_TYPES = 10
STATS_WORKERS = 4


class StatsPeriod(str, Enum):
    LAST_DAY = "24h"
    LAST_WEEK = "7d"
    LAST_MONTH = "30d"
    LAST_QUARTER = "90d"


_PERIOD_SPANS = {
    StatsPeriod.LAST_DAY: timedelta(hours=24),
    StatsPeriod.LAST_WEEK: timedelta(days=7),
    StatsPeriod.LAST_MONTH: timedelta(days=30),
    StatsPeriod.LAST_QUARTER: timedelta(days=90),
}


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def run_parallel(
    session_factory: sessionmaker, tasks: Dict[str, Callable[[Session], object]]
) -> Dict[str, object]:
    """Run independent queries concurrently, each on its own session."""
    def run(task: Callable[[Session], object]) -> object:
        session = session_factory()
        try:
            return task(session)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=STATS_WORKERS) as executor:
        futures = {name: executor.submit(run, task) for name, task in tasks.items()}
        return {name: future.result() for name, future in futures.items()}


# -- aggregate queries (each runs on its own session) ---------------------------
# ``owner_id`` narrows a query to one user's content; None means system-wide.

def _active_files(query, owner_id: Optional[str] = None):
    query = query.filter(File.deleted_at.is_(None))
    if owner_id is not None:
        query = query.filter(File.user_id == owner_id)
    return query


def _count_users(db: Session, since: Optional[datetime] = None, active: bool = False) -> int:
    query = db.query(func.count(User.id))
    if since is not None:
        query = query.filter((User.updated_at if active else User.created_at) >= since)
    return query.scalar() or 0


def _count_files(db: Session, since: Optional[datetime] = None, owner_id: Optional[str] = None) -> int:
    query = _active_files(db.query(func.count(File.id)), owner_id)
    if since is not None:
        query = query.filter(File.created_at >= since)
    return query.scalar() or 0


def _count_folders(db: Session, owner_id: Optional[str] = None) -> int:
    query = db.query(func.count(Folder.id))
    if owner_id is not None:
        query = query.filter(Folder.user_id == owner_id)
    return query.scalar() or 0


def _count_tags(db: Session, owner_id: Optional[str] = None) -> int:
    query = db.query(func.count(Tag.id))
    if owner_id is not None:
        query = query.filter(Tag.user_id == owner_id)
    return query.scalar() or 0


def _storage_used(db: Session, owner_id: Optional[str] = None) -> int:
    return int(_active_files(db.query(func.sum(File.size)), owner_id).scalar() or 0)


def _type_distribution(db: Session) -> List[TypeCount]:
    """Top MIME types by active file count, merged by major type (image, video...)."""
    count = func.count(File.id).label("count")
    rows = (
        db.query(File.mime_type, count)
        .filter(File.deleted_at.is_(None))
        .group_by(File.mime_type)
        .order_by(count.desc(), File.mime_type.asc())
        .limit(TOP_MIME_TYPES)
        .all()
    )
    merged: Dict[str, int] = {}
    for mime_type, n in rows:
        major = (mime_type or "").split("/")[0] or "other"
        merged[major] = merged.get(major, 0) + n
    return [TypeCount(type=t, count=n) for t, n in merged.items()]


def _top_users(db: Session) -> List[TopUser]:
    count = func.count(File.id).label("file_count")
    rows = (
        db.query(User, count)
        .outerjoin(File, and_(File.user_id == User.id, File.deleted_at.is_(None)))
        .group_by(User.id)
        .order_by(count.desc(), User.created_at.asc())
        .limit(TOP_USERS)
        .all()
    )
    return [TopUser(id=u.id, name=u.name, email=u.email, file_count=n or 0) for u, n in rows]


def _popular_tags(db: Session, owner_id: Optional[str] = None, limit: int = POPULAR_TAGS) -> List[PopularTag]:
    count = func.count(FileTag.file_id).label("count")
    query = db.query(Tag, count).outerjoin(FileTag, FileTag.tag_id == Tag.id)
    if owner_id is not None:
        query = query.filter(Tag.user_id == owner_id)
    rows = (
        query.group_by(Tag.id)
        .order_by(count.desc(), Tag.name.asc())
        .limit(limit)
        .all()
    )
    return [PopularTag(id=t.id, name=t.name, color=t.color, count=n or 0) for t, n in rows]


def _upload_trend(
    db: Session, now: datetime, days: int = TREND_DAYS, owner_id: Optional[str] = None
) -> List[UploadTrendPoint]:
    """Uploads and bytes per UTC day for the last *days* days, oldest first."""
    today = now.astimezone(timezone.utc).date()
    dates = [today - timedelta(days=i) for i in range(days - 1, -1, -1)]
    start = datetime.combine(dates[0], datetime.min.time(), tzinfo=timezone.utc)

    buckets = {day: [0, 0] for day in dates}
    rows = _active_files(db.query(File.created_at, File.size), owner_id).filter(File.created_at >= start).all()
    for created_at, size in rows:
        bucket = buckets.get(_as_utc(created_at).date())
        if bucket is not None:
            bucket[0] += 1
            bucket[1] += size or 0

    return [
        UploadTrendPoint(date=day.isoformat(), uploads=buckets[day][0], bytes=buckets[day][1])
        for day in dates
    ]


class AdminService:
    """Statistics and account administration for admins."""

    def __init__(self, db: Session, session_factory: sessionmaker = SessionLocal):
        self.db = db
        self.session_factory = session_factory

    def get_stats(self, period: StatsPeriod = StatsPeriod.LAST_MONTH) -> AdminStatsResponse:
        now = datetime.now(timezone.utc)
        since = now - _PERIOD_SPANS[period]

        results = run_parallel(self.session_factory, {
            "total_users": _count_users,
            "active_users": lambda db: _count_users(db, since, active=True),
            "total_files": _count_files,
            "total_folders": _count_folders,
            "total_tags": _count_tags,
            "new_files_count": lambda db: _count_files(db, since),
            "new_users_count": lambda db: _count_users(db, since),
            "total_storage_used": _storage_used,
            "types": _type_distribution,
            "top_users": _top_users,
            "popular_tags": _popular_tags,
            "trend": lambda db: _upload_trend(db, now),
        })

        return AdminStatsResponse(
            overview=StatsOverview(
                total_users=results["total_users"],
                active_users=results["active_users"],
                total_files=results["total_files"],
                total_folders=results["total_folders"],
                total_tags=results["total_tags"],
                new_files_count=results["new_files_count"],
                new_users_count=results["new_users_count"],
                total_storage_used=results["total_storage_used"],
                period=period.value,
            ),
            charts=StatsCharts(
                upload_trends=results["trend"],
                file_type_distribution=results["types"],
                popular_tags=results["popular_tags"],
            ),
            top_users=results["top_users"],
        )

    # -- users ------------------------------------------------------------------

    def list_users(
        self, page: int, limit: int, search: Optional[str] = None, role: Optional[str] = None
    ) -> AdminUserListResponse:
        total, rows = auth_service.list_users(self.db, page=page, limit=limit, search=search, role=role)
        return AdminUserListResponse(
            users=[self._user_response(u, files, folders) for u, files, folders in rows],
            pagination=Pagination.build(page, limit, total),
        )

    def create_user(self, name: str, email: str, password: str, role: str) -> AdminUserResponse:
        user = auth_service.create_user_with_role(self.db, name, email, password, role)
        return self._user_response(user, 0, 0)

    def update_role(self, acting_user_id: str, user_id: str, role: str) -> AdminUserResponse:
        user = auth_service.update_user_role(self.db, acting_user_id, user_id, role)
        return self._user_response(user, *auth_service.count_owned(self.db, user.id))

    def delete_user(self, acting_user_id: str, user_id: str, blob_store: Optional[BlobStore] = None) -> None:
        """Delete the account and its content; release its blobs best-effort."""
        orphaned = auth_service.delete_user(self.db, acting_user_id, user_id)
        if not orphaned:
            return
        if blob_store is None or not blob_store.is_configured:
            logger.warning("Blob store not configured; %d blobs left in place", len(orphaned))
            return
        delete_blobs(blob_store, orphaned)

    @staticmethod
    def _user_response(user: User, files: int, folders: int) -> AdminUserResponse:
        return AdminUserResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
            file_count=files,
            folder_count=folders,
        )
