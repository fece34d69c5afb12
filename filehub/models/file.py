"""File model."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, String, Text, BigInteger, DateTime
from sqlalchemy.orm import relationship
from ..database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class File(Base):
    """Metadata row for a file whose bytes live in the blob store.

    ``original_name`` is the display name users see and rename; ``filename``
    is the stored name. Copies share ``blob_id`` with their source, so the
    blob is only deleted once no row references it.
    """

    __tablename__ = "files"
    __table_args__ = (
        Index("ix_files_user_folder", "user_id", "folder_id"),
        Index("ix_files_created_at", "created_at"),
        Index("ix_files_blob_id", "blob_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    filename = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)
    blob_id = Column(String(512), nullable=False)
    blob_url = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    folder_id = Column(String(36), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Soft delete (NULL = active, timestamp = in trash)
    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)

    folder = relationship("Folder", back_populates="files")
    owner = relationship("User", back_populates="files")
    tags = relationship("Tag", secondary="file_tags", back_populates="files", viewonly=True, order_by="Tag.name")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @property
    def is_document(self) -> bool:
        return self.mime_type.startswith("application/") or self.mime_type.startswith("text/")
