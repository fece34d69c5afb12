"""User model.

Roles:
    super_admin — everything an admin can do, plus creating admins,
                  changing roles and deleting accounts
    admin       — read access to usage statistics and the user list
    user        — manages their own files, folders and tags
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship
from ..database import Base

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_USER)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Account that owns files, folders, tags and search history."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: uuid4().hex)
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(Text, nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Rows are removed by ON DELETE CASCADE; the ORM must not try to null the FKs.
    files = relationship("File", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    folders = relationship("Folder", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)
    tags = relationship("Tag", back_populates="owner", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def is_admin(self) -> bool:
        return self.role in (ROLE_ADMIN, ROLE_SUPER_ADMIN)
