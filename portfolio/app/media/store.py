"""
Media Store Module
==================

Object storage for uploaded images.

Backends:
- FirebaseMediaStore: Cloud Storage bucket of the Firebase project
- InMemoryMediaStore: process-local bytes for development and tests

Stored objects get Firebase-style download URLs
(https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<path>?alt=media&token=...),
the same shape the site's client SDK produces, so images uploaded either way
can later be replaced through this service.
"""

import logging
import threading
import uuid
from typing import Dict, Optional, Protocol, Tuple
from urllib.parse import quote, unquote, urlparse

import firebase_admin
from firebase_admin import storage
from google.api_core import exceptions as google_exceptions

logger = logging.getLogger("portfolio.media.store")


FIREBASE_STORAGE_HOST = "firebasestorage.googleapis.com"
CLOUD_STORAGE_HOST = "storage.googleapis.com"


class MediaStoreError(Exception):
    """Raised when object storage rejects a request or cannot be reached"""
    pass


class MediaStore(Protocol):
    bucket_name: str

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        ...

    def delete(self, path: str) -> bool:
        ...


def download_url(bucket_name: str, path: str, token: str) -> str:
    return (
        f"https://{FIREBASE_STORAGE_HOST}/v0/b/{bucket_name}/o/"
        f"{quote(path, safe='')}?alt=media&token={token}"
    )


def object_path_from_url(url: Optional[str], bucket_name: str) -> Optional[str]:
    """
    Resolve a storage URL to an object path inside bucket_name.

    Supports Firebase download URLs and plain Cloud Storage URLs. Any other
    URL (placeholders, other buckets, external hosts) resolves to None.
    """
    if not url:
        return None

    parsed = urlparse(url)

    if parsed.netloc == FIREBASE_STORAGE_HOST:
        # /v0/b/<bucket>/o/<url-encoded path>
        parts = parsed.path.split("/", 5)
        if len(parts) != 6 or parts[1] != "v0" or parts[2] != "b" or parts[4] != "o":
            return None
        bucket, encoded_path = parts[3], parts[5]
    elif parsed.netloc == CLOUD_STORAGE_HOST:
        # /<bucket>/<path>
        bucket, _, encoded_path = parsed.path.lstrip("/").partition("/")
    else:
        return None

    if bucket != bucket_name or not encoded_path:
        return None
    return unquote(encoded_path)


def discard_image(store: "MediaStore", url: Optional[str]) -> bool:
    """
    Delete the object behind url, if it lives in store's bucket.

    Failures are logged, not raised: callers treat image cleanup as best effort.

    Returns:
        True if an object was deleted
    """
    # Only objects in our own bucket are deleted; placeholders are ignored
    path = object_path_from_url(url, store.bucket_name)
    if path is None:
        return False
    try:
        deleted = store.delete(path)
    except MediaStoreError as e:
        logger.warning(f"Could not delete image: {e}", extra={"path": path})
        return False
    if deleted:
        logger.info("Deleted image", extra={"path": path})
    return deleted


# =============================================================================
# Cloud Storage
# =============================================================================

class FirebaseMediaStore:
    """
    Media store backed by the Firebase project's Cloud Storage bucket.

    Args:
        bucket: google.cloud.storage.Bucket
    """

    def __init__(self, bucket):
        self._bucket = bucket
        self.bucket_name = bucket.name

    @classmethod
    def from_app(cls, app: firebase_admin.App) -> "FirebaseMediaStore":
        try:
            bucket = storage.bucket(app=app)
        except ValueError as e:
            raise MediaStoreError(f"Storage bucket not configured: {e}") from e
        logger.info("Using storage bucket", extra={"bucket": bucket.name})
        return cls(bucket)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        token = str(uuid.uuid4())
        blob = self._bucket.blob(path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        try:
            blob.upload_from_string(data, content_type=content_type)
        except google_exceptions.GoogleAPIError as e:
            raise MediaStoreError(f"Failed to upload {path}: {e}") from e
        return download_url(self.bucket_name, path, token)

    def delete(self, path: str) -> bool:
        """Delete an object; returns False if it did not exist."""
        try:
            self._bucket.blob(path).delete()
        except google_exceptions.NotFound:
            logger.debug("Object already gone", extra={"path": path})
            return False
        except google_exceptions.GoogleAPIError as e:
            raise MediaStoreError(f"Failed to delete {path}: {e}") from e
        return True


# =============================================================================
# In-Memory
# =============================================================================

class InMemoryMediaStore:
    """Process-local media store."""

    def __init__(self, bucket_name: str = "local-bucket"):
        self.bucket_name = bucket_name
        self._objects: Dict[str, Tuple[bytes, str]] = {}
        self._lock = threading.Lock()

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        with self._lock:
            self._objects[path] = (data, content_type)
        return download_url(self.bucket_name, path, uuid.uuid4().hex)

    def delete(self, path: str) -> bool:
        with self._lock:
            return self._objects.pop(path, None) is not None

    def get(self, path: str) -> Optional[Tuple[bytes, str]]:
        with self._lock:
            return self._objects.get(path)
