"""Object storage behind a small writer interface.

Handlers only see ``BucketStore`` and ``ObjectWriter`` so tests can swap in
an in-memory fake. The Cloud Storage implementation names every object with
a fresh UUID; the key hint passed by callers is not used.
"""

from __future__ import annotations

import io
import logging
import uuid
from typing import Protocol

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from .errors import BootstrapError, StorageError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class ObjectWriter(Protocol):
    def write(self, data: bytes) -> int: ...

    def close(self) -> None: ...

    def set_content_type(self, content_type: str) -> None: ...


class BucketStore(Protocol):
    def new_writer(self, key_hint: str) -> ObjectWriter: ...


class GCSObjectWriter:
    """Buffers bytes and uploads them as one object when closed."""

    def __init__(self, blob, timeout: float) -> None:
        self._blob = blob
        self._timeout = timeout
        self._buffer = io.BytesIO()
        self._content_type = DEFAULT_CONTENT_TYPE
        self._closed = False

    @property
    def name(self) -> str:
        return self._blob.name

    def set_content_type(self, content_type: str) -> None:
        self._content_type = content_type or DEFAULT_CONTENT_TYPE

    def write(self, data: bytes) -> int:
        if self._closed:
            raise ValueError("write to closed object writer")
        return self._buffer.write(data)

    def close(self) -> None:
        if self._closed:
            raise ValueError("object writer already closed")
        self._closed = True
        try:
            # retry=None: a failed upload is final for the request.
            self._blob.upload_from_string(
                self._buffer.getvalue(),
                content_type=self._content_type,
                timeout=self._timeout,
                retry=None,
            )
        except (GoogleAPIError, GoogleAuthError, OSError) as exc:
            raise StorageError(f"upload of {self._blob.name} failed") from exc
        finally:
            self._buffer.close()


class GCSBucketStore:
    def __init__(self, bucket, timeout: float) -> None:
        self._bucket = bucket
        self._timeout = timeout

    @property
    def bucket_name(self) -> str:
        return self._bucket.name

    def new_writer(self, key_hint: str) -> GCSObjectWriter:
        # Callers cannot choose the object name.
        blob = self._bucket.blob(str(uuid.uuid4()))
        return GCSObjectWriter(blob, self._timeout)


def connect(bucket_name: str, timeout: float) -> GCSBucketStore:
    try:
        client = storage.Client()
    except (GoogleAuthError, GoogleAPIError, OSError) as exc:
        raise BootstrapError(f"cannot create Cloud Storage client: {exc}") from exc
    logger.info("using bucket %s", bucket_name)
    return GCSBucketStore(client.bucket(bucket_name), timeout)


def store_bytes(store: BucketStore, key_hint: str, data: bytes, content_type: str) -> int:
    writer = store.new_writer(key_hint)
    writer.set_content_type(content_type)
    written = writer.write(data)
    writer.close()
    return written


__all__ = [
    "BucketStore",
    "GCSBucketStore",
    "GCSObjectWriter",
    "ObjectWriter",
    "StorageError",
    "connect",
    "store_bytes",
]
