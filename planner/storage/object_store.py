"""
Object storage for uploaded images, backed by Cloudinary.

Objects are addressed by a slash-separated key such as
``events/<event id>/<user id>-<millis>.jpg``. The key (without its extension)
becomes the Cloudinary public id under ``STORAGE_ROOT_FOLDER``.
"""
import io
import posixpath
import time
from typing import Optional

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from starlette.concurrency import run_in_threadpool

from planner.core.config import settings
from planner.core.logging import logger

CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class StorageError(Exception):
    """Raised when the object store rejects or cannot complete an operation."""


def _timestamped_key(prefix: str, user_id, content_type: str) -> str:
    # Extension comes from the validated content type
    ext = CONTENT_TYPE_EXTENSIONS[content_type]
    timestamp = int(time.time() * 1000)
    return f"{prefix}/{user_id}-{timestamp}.{ext}"


def event_photo_key(event_id, user_id, content_type: str) -> str:
    """
    Build the storage key for an event photo.

    Format: ``events/{eventId}/{userId}-{timestamp}.{ext}`` with the timestamp
    in milliseconds and the extension implied by ``content_type``.

    Raises:
        KeyError: If ``content_type`` is not a supported image type
    """
    return _timestamped_key(f"events/{event_id}", user_id, content_type)


def profile_image_key(user_id, content_type: str) -> str:
    """Storage key of a profile image: ``profile-images/{userId}-{timestamp}.{ext}``."""
    return _timestamped_key("profile-images", user_id, content_type)


class ObjectStore:
    """Thin async facade over the Cloudinary uploader."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        root_folder: Optional[str] = None,
        public_url: Optional[str] = None,
    ):
        self.cloud_name = cloud_name or settings.CLOUDINARY_CLOUD_NAME
        self.api_key = api_key or settings.CLOUDINARY_API_KEY
        self.api_secret = api_secret or settings.CLOUDINARY_API_SECRET
        self.root_folder = (root_folder or settings.STORAGE_ROOT_FOLDER).strip("/")
        self.public_url = public_url or settings.STORAGE_PUBLIC_URL
        if self.is_configured:
            cloudinary.config(
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                secure=True,
            )

    @property
    def is_configured(self) -> bool:
        return all([self.cloud_name, self.api_key, self.api_secret])

    def _public_id(self, key: str) -> str:
        stem, _ = posixpath.splitext(key)
        return f"{self.root_folder}/{stem}" if self.root_folder else stem

    def _ensure_configured(self) -> None:
        if not self.is_configured:
            raise StorageError(
                "Object storage is not configured. Set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET."
            )

    async def upload(self, data: bytes, key: str, content_type: str) -> str:
        """
        Store bytes under a key.

        Args:
            data: Raw file contents
            key: Storage key
            content_type: MIME type of the contents

        Returns:
            Public URL of the stored object

        Raises:
            StorageError: If storage is not configured or the upload fails
        """
        self._ensure_configured()
        ext = posixpath.splitext(key)[1].lstrip(".") or None
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                public_id=self._public_id(key),
                resource_type="image",
                format=ext,
                overwrite=False,
            )
        except CloudinaryError as e:
            logger.error(f"Upload of {key} ({content_type}) failed: {e}")
            raise StorageError("Failed to upload file to storage") from e

        if self.public_url:
            return f"{self.public_url.rstrip('/')}/{key}"
        return result.get("secure_url", result.get("url"))

    async def delete(self, key: str) -> None:
        """
        Remove the object stored under a key.

        Raises:
            StorageError: If storage is not configured or the deletion fails
        """
        self._ensure_configured()
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.destroy,
                self._public_id(key),
                resource_type="image",
            )
        except CloudinaryError as e:
            logger.error(f"Deletion of {key} failed: {e}")
            raise StorageError("Failed to delete file from storage") from e
        if result.get("result") not in ("ok", "not found"):
            raise StorageError(f"Deletion failed: {result.get('result', 'unknown error')}")


_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """Dependency returning the process-wide object store."""
    global _store
    if _store is None:
        _store = ObjectStore()
    return _store
