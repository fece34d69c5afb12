"""Folder model: a per-user tree via a self-referential parent_id."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, String, Text, DateTime
from sqlalchemy.orm import relationship
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Folder(Base):
    """Folder owned by one user.

    Sibling names are unique per owner and parent. That is enforced by the
    service layer under the owner lock, not by a constraint, because a NULL
    parent_id (root) never collides in a unique index.
    """

    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_user_parent", "user_id", "parent_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    parent_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    parent = relationship("Folder", remote_side=[id], back_populates="children")
    children = relationship("Folder", back_populates="parent", passive_deletes=True)
    files = relationship("File", back_populates="folder", passive_deletes=True)
    owner = relationship("User", back_populates="folders")
