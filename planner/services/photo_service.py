from typing import List, Optional, Set, Tuple
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.config import settings
from planner.core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from planner.core.logging import logger
from planner.db.models import Event, EventPhoto, User
from planner.db.repositories import photos as photo_repo
from planner.db.repositories.events import get_event
from planner.storage.object_store import ObjectStore, StorageError, event_photo_key

ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp"}


async def read_image_upload(
    upload: UploadFile,
    allowed_types: Set[str],
    max_bytes: int,
    type_error: str,
    size_error: str,
) -> Tuple[bytes, str]:
    """
    Validate an uploaded image and return its contents and content type.

    The declared size is checked before the body is read when the client
    sent one; the length of the read body is checked in every case.

    Raises:
        BadRequestError: If the type is not allowed or the file is too large
    """
    content_type = (upload.content_type or "").lower()
    if content_type not in allowed_types:
        raise BadRequestError(type_error, details={"content_type": content_type})

    if upload.size is not None and upload.size > max_bytes:
        raise BadRequestError(size_error, details={"size": upload.size, "max_size": max_bytes})

    data = await upload.read()
    if len(data) > max_bytes:
        raise BadRequestError(size_error, details={"size": len(data), "max_size": max_bytes})
    return data, content_type


class PhotoService:
    """
    Photos attached to events.

    Uploads are validated completely (event, file presence, type and size)
    before anything is written to the object store or the database.
    """

    def __init__(self, session: AsyncSession, store: ObjectStore):
        self.session = session
        self.store = store

    async def _require_event(self, event_id: UUID) -> Event:
        event = await get_event(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    async def list_photos(self, event_id: UUID) -> List[EventPhoto]:
        await self._require_event(event_id)
        return await photo_repo.list_photos_for_event(self.session, event_id)

    async def get_photo(self, event_id: UUID, photo_id: UUID) -> EventPhoto:
        await self._require_event(event_id)
        photo = await photo_repo.get_photo(self.session, event_id, photo_id)
        if not photo:
            raise NotFoundError("Photo not found")
        return photo

    async def upload_photo(
        self,
        event_id: UUID,
        user: User,
        upload: Optional[UploadFile],
        caption: Optional[str] = None,
    ) -> EventPhoto:
        """
        Store an uploaded image and attach it to an event.

        Args:
            event_id: Target event
            user: Uploader
            upload: Multipart file part named ``photo``
            caption: Optional caption, stored as an empty string when omitted

        Returns:
            The created photo with its uploader loaded

        Raises:
            NotFoundError: If the event does not exist
            BadRequestError: If the file is missing, of a disallowed type, or too large
        """
        event = await self._require_event(event_id)

        if upload is None or not upload.filename:
            raise BadRequestError("No file uploaded")

        data, content_type = await read_image_upload(
            upload,
            ALLOWED_CONTENT_TYPES,
            settings.MAX_PHOTO_BYTES,
            type_error="Invalid file type. Only JPEG, PNG and WebP images are allowed",
            size_error="File too large. Maximum size is 10MB",
        )

        key = event_photo_key(event.id, user.id, content_type)
        image_url = await self.store.upload(data, key, content_type)

        photo = await photo_repo.create_photo(
            self.session,
            event_id=event.id,
            user_id=user.id,
            image_url=image_url,
            storage_key=key,
            caption=caption or "",
        )
        logger.info(f"User {user.id} uploaded photo {photo.id} to event {event.id}")
        return photo

    async def delete_photo(self, event_id: UUID, photo_id: UUID, user: User) -> None:
        """
        Delete a photo; allowed for the event host and the uploader.

        The row is removed first. A failure to remove the stored object is
        logged and does not restore the row.
        """
        event = await self._require_event(event_id)
        photo = await photo_repo.get_photo(self.session, event_id, photo_id)
        if not photo:
            raise NotFoundError("Photo not found")
        if user.id not in (event.host_id, photo.user_id):
            raise ForbiddenError("You are not authorized to delete this photo")

        storage_key = photo.storage_key
        await photo_repo.delete_photo(self.session, photo)
        logger.info(f"User {user.id} deleted photo {photo_id} from event {event_id}")

        try:
            await self.store.delete(storage_key)
        except StorageError as e:
            logger.warning(f"Could not remove stored object {storage_key}: {e}")
