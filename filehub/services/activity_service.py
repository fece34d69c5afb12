"""Recent activity feed: uploads, folders and tags of the caller, newest first."""

from datetime import datetime, timezone
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..models import File, FileTag, Folder, Tag, User
from ..schemas.admin import Activity


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def recent_activities(db: Session, owner_id: str, limit: int = 10) -> List[Activity]:
    owner = db.query(User).filter(User.id == owner_id).first()
    who = (owner.name or owner.email) if owner else "Unknown User"

    files = (
        db.query(File)
        .options(joinedload(File.folder))
        .filter(File.user_id == owner_id, File.deleted_at.is_(None))
        .order_by(File.created_at.desc())
        .limit(limit)
        .all()
    )
    folders = (
        db.query(Folder)
        .filter(Folder.user_id == owner_id)
        .order_by(Folder.created_at.desc())
        .limit(limit)
        .all()
    )
    tag_rows = (
        db.query(Tag, func.count(FileTag.file_id))
        .outerjoin(FileTag, FileTag.tag_id == Tag.id)
        .filter(Tag.user_id == owner_id)
        .group_by(Tag.id)
        .order_by(Tag.created_at.desc())
        .limit(limit)
        .all()
    )

    activities: List[Activity] = []
    for f in files:
        where = f" to {f.folder.name}" if f.folder else ""
        activities.append(Activity(
            id=f"file-{f.id}",
            type="upload",
            title="File Uploaded",
            description=f"{who} uploaded {f.original_name}{where}",
            time=_as_utc(f.created_at),
        ))
    for folder in folders:
        activities.append(Activity(
            id=f"folder-{folder.id}",
            type="folder",
            title="Folder Created",
            description=f"{who} created {folder.name} folder",
            time=_as_utc(folder.created_at),
        ))
    for tag, count in tag_rows:
        activities.append(Activity(
            id=f"tag-{tag.id}",
            type="tag",
            title="Tag Created",
            description=f"{who} created {tag.name} tag ({count or 0} files)",
            time=_as_utc(tag.created_at),
        ))

    activities.sort(key=lambda a: a.time, reverse=True)
    return activities[:limit]
