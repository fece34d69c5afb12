"""Tests for the S3 blob store and best-effort bulk deletion."""

import pytest

from filehub.exceptions import BlobStoreError, ServiceUnavailableError
from filehub.services.blob_store import S3BlobStore, delete_blobs
from tests.conftest import TEST_BUCKET


def _keys(s3_client):
    return [o["Key"] for o in s3_client.list_objects_v2(Bucket=TEST_BUCKET).get("Contents", [])]


class TestS3BlobStore:

    def test_upload_key_and_url(self, blob_store, s3_client):
        result = blob_store.upload(
            b"hello", folder="user-1", resource_type="raw", filename="../My Notes.txt", content_type="text/plain"
        )

        assert result.id.startswith("filehub-uploads/user-1/raw/")
        assert result.id.endswith("-My_Notes.txt")
        assert result.url == f"https://cdn.test/{result.id}"
        assert result.bytes == 5
        assert result.format == "txt"
        assert _keys(s3_client) == [result.id]

    def test_url_without_public_base(self, s3_client):
        store = S3BlobStore(bucket=TEST_BUCKET, client=s3_client)
        assert store.object_url("k") == f"https://{TEST_BUCKET}.s3.us-east-1.amazonaws.com/k"

        minio = S3BlobStore(bucket=TEST_BUCKET, client=s3_client, endpoint_url="http://minio:9000/")
        assert minio.object_url("k") == f"http://minio:9000/{TEST_BUCKET}/k"

    def test_delete(self, blob_store, s3_client):
        s3_client.put_object(Bucket=TEST_BUCKET, Key="a", Body=b"x")
        blob_store.delete("a")
        assert _keys(s3_client) == []

    def test_missing_bucket_raises_store_error(self, s3_client):
        store = S3BlobStore(bucket="no-such-bucket", client=s3_client)
        with pytest.raises(BlobStoreError):
            store.upload(b"x", folder="u", resource_type="raw", filename="a.txt", content_type="text/plain")

    def test_unconfigured_store(self):
        store = S3BlobStore(bucket="")
        assert store.is_configured is False
        with pytest.raises(ServiceUnavailableError):
            store.delete("a")


class _FlakyStore:
    is_configured = True

    def __init__(self, failing):
        self.failing = set(failing)
        self.deleted = []

    def delete(self, blob_id):
        if blob_id in self.failing:
            raise BlobStoreError(f"Failed to delete blob {blob_id}")
        self.deleted.append(blob_id)


class TestDeleteBlobs:

    def test_collects_failures_without_raising(self):
        store = _FlakyStore(failing={"b"})
        failed = delete_blobs(store, ["a", "b", "c", "a"], max_workers=2)
        assert failed == ["b"]
        assert sorted(store.deleted) == ["a", "c"]

    def test_empty_input(self):
        assert delete_blobs(_FlakyStore(failing=()), []) == []
