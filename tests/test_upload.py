"""Tests for /api/upload."""

import pytest
from sqlalchemy.exc import OperationalError

from filehub.core.config import settings
from filehub.exceptions import ValidationError
from filehub.main import app
from filehub.models import File
from filehub.services.blob_store import S3BlobStore, get_blob_store
from filehub.services.upload_service import parse_tag_ids, resource_type_for
from tests.conftest import TEST_BUCKET, make_folder, make_tag


def _post(client, headers, name="notes.txt", body=b"hello", content_type="text/plain", **form):
    return client.post(
        "/api/upload",
        files={"file": (name, body, content_type)},
        data=form,
        headers=headers,
    )


def _keys(s3_client):
    listing = s3_client.list_objects_v2(Bucket=TEST_BUCKET)
    return [obj["Key"] for obj in listing.get("Contents", [])]


class TestHelpers:

    def test_tag_ids_json_and_csv(self):
        assert parse_tag_ids('["a", "b", "a"]') == ["a", "b"]
        assert parse_tag_ids("a, b ,,c") == ["a", "b", "c"]
        assert parse_tag_ids("") == []
        assert parse_tag_ids(None) == []

    def test_tag_ids_must_be_a_list(self):
        with pytest.raises(ValidationError):
            parse_tag_ids('{"a": 1}')

    def test_resource_types(self):
        assert resource_type_for("application/pdf") == "raw"
        assert resource_type_for("video/mp4") == "video"
        assert resource_type_for("image/png") == "image"
        assert resource_type_for("text/plain") == "raw"


class TestUpload:

    def test_stores_blob_and_row(self, client, db, user, auth_headers, s3_client):
        folder = make_folder(db, user)
        tag = make_tag(db, user)

        resp = _post(
            client, auth_headers, name="photo.png", body=b"\x89PNG data", content_type="image/png",
            folderId=folder.id, description="beach", tagIds=f'["{tag.id}"]',
        )

        assert resp.status_code == 200
        body = resp.json()["file"]
        assert body["originalName"] == "photo.png"
        assert body["size"] == len(b"\x89PNG data")
        assert body["folderId"] == folder.id
        assert body["description"] == "beach"
        assert [t["name"] for t in body["tags"]] == ["work"]
        assert body["blobUrl"].startswith("https://cdn.test/")

        keys = _keys(s3_client)
        assert keys == [body["blobId"]]
        assert keys[0].startswith(f"filehub-uploads/{user.id}/image/")
        assert body["filename"] == keys[0].rsplit("/", 1)[-1]

    def test_tag_ids_as_csv(self, client, db, user, auth_headers):
        a = make_tag(db, user, "a")
        b = make_tag(db, user, "b")
        resp = _post(client, auth_headers, tagIds=f"{a.id},{b.id}")
        assert sorted(t["name"] for t in resp.json()["file"]["tags"]) == ["a", "b"]

    def test_unsupported_type_is_400(self, client, auth_headers, s3_client):
        resp = _post(client, auth_headers, name="run.exe", content_type="application/x-msdownload")
        assert resp.status_code == 400
        assert resp.json()["message"] == "File type not supported"
        assert _keys(s3_client) == []

    def test_too_large_is_400(self, client, auth_headers, monkeypatch, s3_client):
        monkeypatch.setattr(settings, "max_image_size", 4)
        resp = _post(client, auth_headers, body=b"too many bytes")
        assert resp.status_code == 400
        assert "size too large" in resp.json()["message"]
        assert _keys(s3_client) == []

    def test_foreign_folder_is_404(self, client, db, other_user, auth_headers, s3_client):
        foreign = make_folder(db, other_user)
        resp = _post(client, auth_headers, folderId=foreign.id)
        assert resp.status_code == 404
        assert _keys(s3_client) == []

    def test_foreign_tag_is_404(self, client, db, other_user, auth_headers, s3_client):
        foreign = make_tag(db, other_user)
        resp = _post(client, auth_headers, tagIds=foreign.id)
        assert resp.status_code == 404
        assert resp.json()["message"] == "Some tags not found or access denied"
        assert _keys(s3_client) == []

    def test_database_failure_removes_blob(self, client, db, auth_headers, monkeypatch, s3_client):
        def failing_commit():
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(db, "commit", failing_commit)

        resp = _post(client, auth_headers)

        assert resp.status_code == 500
        assert resp.json()["error"] == "DATABASE_ERROR"
        assert _keys(s3_client) == []
        assert db.query(File).count() == 0

    def test_unconfigured_store_is_503(self, client, auth_headers):
        app.dependency_overrides[get_blob_store] = lambda: S3BlobStore(bucket="")
        resp = _post(client, auth_headers)
        assert resp.status_code == 503

    def test_requires_auth(self, client):
        assert _post(client, {}).status_code == 401


class TestUploadStatus:

    def test_reports_limits(self, client, auth_headers):
        data = client.get("/api/upload", headers=auth_headers).json()
        assert data["configured"] is True
        assert data["maxImageSize"] == settings.max_image_size
        assert "application/pdf" in data["allowedTypes"]

    def test_unconfigured(self, client, auth_headers):
        app.dependency_overrides[get_blob_store] = lambda: S3BlobStore(bucket="")
        assert client.get("/api/upload", headers=auth_headers).json()["configured"] is False
