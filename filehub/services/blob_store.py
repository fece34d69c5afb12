"""Blob store for uploaded file bodies (S3 / MinIO compatible).

The database is authoritative for file metadata; the blob store only holds
bytes. Routes receive a ``BlobStore`` through the ``get_blob_store``
dependency so tests can substitute an in-memory S3 (moto) or a fake.
"""

import logging
import os
import re
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..core.config import settings
from ..exceptions import BlobStoreError, ServiceUnavailableError

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class UploadResult:
    """What the store reports back for a stored object."""
    id: str
    url: str
    bytes: int
    format: str


class BlobStore(Protocol):
    @property
    def is_configured(self) -> bool: ...

    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        resource_type: str,
        filename: str,
        content_type: str,
    ) -> UploadResult: ...

    def delete(self, blob_id: str) -> None: ...


class S3BlobStore:
    """Blob store backed by one S3 bucket.

    Object keys are ``{prefix}/{folder}/{resource_type}/{uuid}-{name}``; the
    key doubles as the blob id stored on the file row.
    """

    def __init__(
        self,
        bucket: str,
        client=None,
        key_prefix: str = "filehub-uploads",
        public_base_url: str = "",
        endpoint_url: str = "",
        region: str = "us-east-1",
    ):
        self.bucket = bucket
        self.key_prefix = key_prefix.strip("/")
        self.public_base_url = public_base_url.rstrip("/")
        self.endpoint_url = endpoint_url.rstrip("/")
        self.region = region
        self._client = client

    @classmethod
    def from_settings(cls) -> "S3BlobStore":
        client = None
        if settings.blob_store_configured:
            client = boto3.client(
                "s3",
                endpoint_url=settings.blob_endpoint_url or None,
                region_name=settings.blob_region,
                aws_access_key_id=settings.blob_access_key or None,
                aws_secret_access_key=settings.blob_secret_key or None,
            )
        return cls(
            bucket=settings.blob_bucket,
            client=client,
            key_prefix=settings.blob_key_prefix,
            public_base_url=settings.blob_public_base_url,
            endpoint_url=settings.blob_endpoint_url,
            region=settings.blob_region,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.bucket) and self._client is not None

    def _require_client(self):
        if not self.is_configured:
            raise ServiceUnavailableError("File storage is not configured")
        return self._client

    def object_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(
        self,
        data: bytes,
        *,
        folder: str,
        resource_type: str,
        filename: str,
        content_type: str,
    ) -> UploadResult:
        client = self._require_client()
        name = _UNSAFE_KEY_CHARS.sub("_", os.path.basename(filename)) or "file"
        key = f"{self.key_prefix}/{folder}/{resource_type}/{uuid.uuid4().hex}-{name}"

        try:
            client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error("Blob upload failed", extra={"key": key, "error": str(e)})
            raise BlobStoreError("Failed to store file", original_error=e)

        logger.info("Blob stored", extra={"key": key, "bytes": len(data)})
        return UploadResult(
            id=key,
            url=self.object_url(key),
            bytes=len(data),
            format=os.path.splitext(name)[1].lstrip(".").lower(),
        )

    def delete(self, blob_id: str) -> None:
        client = self._require_client()
        try:
            client.delete_object(Bucket=self.bucket, Key=blob_id)
        except (ClientError, BotoCoreError) as e:
            raise BlobStoreError(f"Failed to delete blob {blob_id}", original_error=e)
        logger.info("Blob deleted", extra={"key": blob_id})


@lru_cache(maxsize=1)
def get_blob_store() -> BlobStore:
    """FastAPI dependency returning the process-wide blob store."""
    return S3BlobStore.from_settings()


def delete_blobs(store: BlobStore, blob_ids: Iterable[str], max_workers: Optional[int] = None) -> list[str]:
    """Delete blobs in parallel, best-effort.

    Failures are logged per blob and never raised. Returns the ids that could
    not be deleted.
    """
    ids = list(dict.fromkeys(blob_ids))
    if not ids:
        return []

    workers = max(1, min(max_workers or settings.blob_delete_workers, len(ids)))
    failed: list[str] = []

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(store.delete, blob_id): blob_id for blob_id in ids}
        for future in as_completed(futures):
            blob_id = futures[future]
            try:
                future.result()
            except Exception as e:
                logger.warning(
                    "Blob delete failed; database state kept",
                    extra={"blob_id": blob_id, "error": str(e)},
                )
                failed.append(blob_id)

    return failed
