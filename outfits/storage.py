"""
Storage abstraction for S3-compatible object storage and in-memory testing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Protocol

import boto3
from botocore.config import Config

IMAGE_CONTENT_TYPE = "image/png"


def new_image_id(user_id: str) -> str:
    """Image ids are the owner's id plus the current epoch in milliseconds."""
    return f"{user_id}-{int(time.time() * 1000)}"


def image_key(user_id: str, image_id: str) -> str:
    return f"{user_id}/{image_id}.png"


class StorageClient(Protocol):
    """Defines the operations the API needs from object storage."""

    def presign_put(
        self, path: str, expires_in: int = 30, content_type: str = IMAGE_CONTENT_TYPE
    ) -> str:
        ...

    def presign_delete(self, path: str, expires_in: int = 30) -> str:
        ...

    def delete_object(self, path: str) -> None:
        ...


@dataclass
class InMemoryStorageClient:
    """Test double for storage interactions."""

    base_url: str = "https://example.test/storage"
    stored_objects: dict = field(default_factory=dict)
    deleted: list = field(default_factory=list)
    fail_signing: bool = False
    fail_deletes: int = 0

    def presign_put(
        self, path: str, expires_in: int = 30, content_type: str = IMAGE_CONTENT_TYPE
    ) -> str:
        if self.fail_signing:
            raise RuntimeError("signing disabled")
        return f"{self.base_url}/{path}?op=put&expires={expires_in}"

    def presign_delete(self, path: str, expires_in: int = 30) -> str:
        if self.fail_signing:
            raise RuntimeError("signing disabled")
        return f"{self.base_url}/{path}?op=delete&expires={expires_in}"

    def delete_object(self, path: str) -> None:
        if self.fail_deletes > 0:
            self.fail_deletes -= 1
            raise ConnectionError(f"delete failed for {path}")
        self.stored_objects.pop(path, None)
        self.deleted.append(path)


@dataclass
class S3StorageClient:
    """
    Storage client for any S3-compatible endpoint.
    """

    bucket: str
    region: Optional[str] = None
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None

    def __post_init__(self):
        config = Config(signature_version="s3v4")
        self._client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def presign_put(
        self, path: str, expires_in: int = 30, content_type: str = IMAGE_CONTENT_TYPE
    ) -> str:
        # The browser must send the same Content-Type when uploading.
        return self._client.generate_presigned_url(
            ClientMethod="put_object",
            Params={
                "Bucket": self.bucket,
                "Key": path,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in,
        )

    def presign_delete(self, path: str, expires_in: int = 30) -> str:
        return self._client.generate_presigned_url(
            ClientMethod="delete_object",
            Params={"Bucket": self.bucket, "Key": path},
            ExpiresIn=expires_in,
        )

    def delete_object(self, path: str) -> None:
        self._client.delete_object(Bucket=self.bucket, Key=path)
