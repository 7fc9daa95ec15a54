"""
Blob storage backends for uploaded audio.

Two interchangeable backends are supported, picked once at startup from
STORAGE_BACKEND:

- ``local``: files under MEDIA_DIR; references are paths relative to it.
- ``s3``: any S3-compatible bucket (AWS, R2, B2, MinIO); references are
  public URLs whose last path segment is the object key.

Every failure is raised as BlobStoreError (BlobNotFound for missing blobs) so
routes only ever handle one exception family.
"""

import io
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote, unquote, urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import Settings

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class BlobStoreError(Exception):
    """A storage call failed; the message carries the vendor detail."""


class BlobNotFound(BlobStoreError):
    pass


class BlobStore(ABC):
    @abstractmethod
    def upload(self, name: str, data: bytes, content_type: str) -> str:
        """Store `data` under `name` and return the reference to save on the song record."""

    @abstractmethod
    def delete(self, reference: str) -> None:
        pass

    @abstractmethod
    def size(self, reference: str) -> int:
        pass

    @abstractmethod
    def open_range(self, reference: str, start: int, end: int) -> BinaryIO:
        """
        Open a read cursor positioned at `start`.

        The returned object has read(n) and close(); callers must stop after
        end - start + 1 bytes and close it themselves.
        """


class LocalBlobStore(BlobStore):
    def __init__(self, media_dir: str | os.PathLike):
        self.root = Path(media_dir)

    def _resolve(self, reference: str) -> Path:
        root = self.root.resolve()
        path = (root / reference).resolve()
        if not path.is_relative_to(root):
            logger.warning(f"Blocked blob reference outside media dir: {reference!r}")
            raise BlobNotFound(f"Blob not found: {reference}")
        return path

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        name = os.path.basename(name)
        dest = self._resolve(name)
        try:
            os.makedirs(dest.parent, exist_ok=True)
            with open(dest, "wb") as f_out:
                f_out.write(data)
        except OSError as e:
            if dest.exists():
                os.unlink(dest)
            raise BlobStoreError(f"Could not write {name}: {e}") from e
        logger.info(f"Stored {len(data)} bytes at {dest}")
        return name

    def delete(self, reference: str) -> None:
        path = self._resolve(reference)
        if not path.exists():
            logger.warning(f"Blob already gone: {path}")
            return
        try:
            os.unlink(path)
        except OSError as e:
            raise BlobStoreError(f"Could not delete {reference}: {e}") from e
        logger.info(f"Deleted file: {path}")

    def size(self, reference: str) -> int:
        path = self._resolve(reference)
        try:
            if not path.is_file():
                raise BlobNotFound(f"Blob not found: {reference}")
            return path.stat().st_size
        except OSError as e:
            raise BlobStoreError(f"Could not stat {reference}: {e}") from e

    def open_range(self, reference: str, start: int, end: int) -> BinaryIO:
        path = self._resolve(reference)
        try:
            f = open(path, "rb")
        except FileNotFoundError as e:
            raise BlobNotFound(f"Blob not found: {reference}") from e
        except OSError as e:
            raise BlobStoreError(f"Could not open {reference}: {e}") from e
        try:
            f.seek(start)
        except OSError as e:
            f.close()
            raise BlobStoreError(f"Could not seek {reference}: {e}") from e
        return f


class S3BlobStore(BlobStore):
    def __init__(self, client, bucket: str, public_url: str):
        self.client = client
        self.bucket = bucket
        self.public_url = public_url.rstrip("/")

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key_id,
            aws_secret_access_key=settings.s3_secret_access_key,
            region_name=settings.s3_region,
        )
        public_url = settings.s3_public_url
        if not public_url:
            if settings.s3_endpoint_url:
                public_url = f"{settings.s3_endpoint_url.rstrip('/')}/{settings.s3_bucket}"
            else:
                public_url = f"https://{settings.s3_bucket}.s3.amazonaws.com"
        return cls(client, settings.s3_bucket, public_url)

    def key_for(self, reference: str) -> str:
        return unquote(urlparse(reference).path.rsplit("/", 1)[-1])

    def _error(self, action: str, key: str, e: Exception) -> BlobStoreError:
        if isinstance(e, ClientError):
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return BlobNotFound(f"Blob not found: {key}")
        return BlobStoreError(f"{action} failed for {key}: {e}")

    def upload(self, name: str, data: bytes, content_type: str) -> str:
        key = os.path.basename(name)
        logger.info(f"Uploading {key} to bucket {self.bucket}")
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (ClientError, BotoCoreError) as e:
            raise self._error("Upload", key, e) from e
        return f"{self.public_url}/{quote(key)}"

    def delete(self, reference: str) -> None:
        key = self.key_for(reference)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._error("Delete", key, e) from e
        logger.info(f"Deleted {key} from bucket {self.bucket}")

    def size(self, reference: str) -> int:
        key = self.key_for(reference)
        try:
            head = self.client.head_object(Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise self._error("Head", key, e) from e
        return int(head["ContentLength"])

    def open_range(self, reference: str, start: int, end: int) -> BinaryIO:
        if end < start:
            # Zero-length blob: S3 rejects an empty Range
            return io.BytesIO(b"")
        key = self.key_for(reference)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key, Range=f"bytes={start}-{end}")
        except (ClientError, BotoCoreError) as e:
            raise self._error("Get", key, e) from e
        return response["Body"]


def create_blob_store(settings: Settings) -> BlobStore:
    if settings.storage_backend == "local":
        logger.info(f"Using local blob storage at {settings.media_dir}")
        return LocalBlobStore(settings.media_dir)
    if settings.storage_backend == "s3":
        logger.info(f"Using S3 blob storage, bucket {settings.s3_bucket}")
        return S3BlobStore.from_settings(settings)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")
