"""Shared test fixtures for the FileHub test suite.

Tests run against a throwaway SQLite file by default (set TEST_DATABASE_URL
to use PostgreSQL instead). Every test starts from freshly created tables.

The blob store is an in-memory S3 bucket provided by moto.
"""

import os
import tempfile

_TMP_DIR = tempfile.mkdtemp(prefix="filehub-tests-")

# Use the test database and a quiet, deterministic config before any app imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL", f"sqlite:///{os.path.join(_TMP_DIR, 'filehub_test.db')}"
)
os.environ["LOG_FORMAT"] = "text"
os.environ["BLOB_BUCKET"] = ""
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

from datetime import datetime, timezone
from typing import Optional

import boto3
import pytest
from fastapi.testclient import TestClient
from moto import mock_aws
from passlib.hash import bcrypt

from filehub.core.config import settings
from filehub.core.token_factory import create_token
from filehub.database import Base, SessionLocal, engine, get_db
from filehub.main import app
from filehub.middleware.request_context import _rate_buckets
from filehub.models import File, FileTag, Folder, Tag, User
from filehub.services.blob_store import S3BlobStore, get_blob_store

TEST_BUCKET = "filehub-test"
TEST_PASSWORD = "password123"
_PASSWORD_HASH = bcrypt.hash(TEST_PASSWORD)


@pytest.fixture(autouse=True)
def _clean_tables():
    """Recreate all tables before each test for isolation.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def s3_client():
    """Mock S3 with the test bucket created."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=TEST_BUCKET)
        yield client


@pytest.fixture()
def blob_store(s3_client):
    return S3BlobStore(bucket=TEST_BUCKET, client=s3_client, public_base_url="https://cdn.test")


@pytest.fixture()
def client(db, blob_store):
    """TestClient with the DB session and blob store overridden."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    _rate_buckets.clear()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email: str = "alice@example.com", name: Optional[str] = "Alice", role: str = "user") -> User:
    user = User(name=name, email=email, password_hash=_PASSWORD_HASH, role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = create_token(subject=user.id, role=user.role, secret=settings.jwt_secret_key)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def user(db) -> User:
    return make_user(db)


@pytest.fixture()
def other_user(db) -> User:
    return make_user(db, email="bob@example.com", name="Bob")


@pytest.fixture()
def auth_headers(user) -> dict:
    return headers_for(user)


@pytest.fixture()
def other_headers(other_user) -> dict:
    return headers_for(other_user)


def make_folder(db, owner: User, name: str = "Docs", parent: Optional[Folder] = None, **overrides) -> Folder:
    folder = Folder(name=name, user_id=owner.id, parent_id=parent.id if parent else None, **overrides)
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder


def make_tag(db, owner: User, name: str = "work", color: str = "#3B82F6") -> Tag:
    tag = Tag(name=name, color=color, user_id=owner.id)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


def make_file(
    db,
    owner: User,
    original_name: str = "report.pdf",
    folder: Optional[Folder] = None,
    mime_type: str = "application/pdf",
    size: int = 1024,
    tags: tuple = (),
    created_at: Optional[datetime] = None,
    deleted: bool = False,
    blob_id: Optional[str] = None,
    **overrides,
) -> File:
    """Factory for file rows. The stored filename defaults to the display name."""
    file = File(
        filename=overrides.pop("filename", original_name),
        original_name=original_name,
        mime_type=mime_type,
        size=size,
        blob_id=blob_id or f"filehub-uploads/{owner.id}/{original_name}",
        blob_url=f"https://cdn.test/{original_name}",
        folder_id=folder.id if folder else None,
        user_id=owner.id,
        deleted_at=datetime.now(timezone.utc) if deleted else None,
        **overrides,
    )
    if created_at is not None:
        file.created_at = created_at
    db.add(file)
    db.flush()
    for tag in tags:
        db.add(FileTag(file_id=file.id, tag_id=tag.id))
    db.commit()
    db.refresh(file)
    return file
