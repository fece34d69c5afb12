"""Tag model and the file/tag join table."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, ForeignKey, String, Text, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tag(Base):
    """User-defined label. Names are stored lowercase and unique per owner."""

    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="uq_tags_user_name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    name = Column(String(50), nullable=False)
    color = Column(String(7), nullable=False)
    description = Column(Text, nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    owner = relationship("User", back_populates="tags")
    files = relationship("File", secondary="file_tags", back_populates="tags", viewonly=True)


class FileTag(Base):
    """Association row linking a file to a tag.

    Written directly (not through ``File.tags``) so that replacing a file's
    tag set is a plain delete-then-insert inside one transaction.
    """

    __tablename__ = "file_tags"

    file_id = Column(String(36), ForeignKey("files.id", ondelete="CASCADE"), primary_key=True)
    tag_id = Column(String(36), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
