from typing import List, Optional
from uuid import UUID

from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.config import settings
from planner.core.exceptions import BadRequestError, NotFoundError
from planner.core.logging import logger
from planner.db.models import User
from planner.db.models.attendee import utcnow
from planner.db.repositories import users as user_repo
from planner.db.repositories.events import list_upcoming_hosted
from planner.db.repositories.friends import are_friends, find_pending_request, get_friend_ids
from planner.db.repositories.photos import list_storage_keys_for_user
from planner.schemas import (
    EventOut,
    FriendStatus,
    ProfileOut,
    UserCreate,
    UserDetailOut,
    UserSearchResult,
    UserUpdate,
)
from planner.services.photo_service import read_image_upload
from planner.storage.object_store import ObjectStore, StorageError, profile_image_key

MIN_SEARCH_LENGTH = 2
PROFILE_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


class UserService:
    def __init__(self, session: AsyncSession, store: Optional[ObjectStore] = None):
        self.session = session
        self.store = store

    async def get_profile(self, username: str, viewer: Optional[User]) -> ProfileOut:
        """
        Public profile of ``username`` with its relationship to the viewer.

        friend_status is resolved in order: an existing friendship, then a
        pending request sent by the viewer, then one received by the viewer.
        """
        user = await user_repo.get_user_by_username(self.session, username)
        if not user:
            raise NotFoundError("User not found")

        profile = ProfileOut.model_validate(user)
        if viewer is None:
            return profile
        if viewer.id == user.id:
            profile.is_current_user = True
            return profile

        if await are_friends(self.session, viewer.id, user.id):
            profile.friend_status = FriendStatus.friends
        elif await find_pending_request(self.session, viewer.id, user.id):
            profile.friend_status = FriendStatus.pending_outgoing
        elif await find_pending_request(self.session, user.id, viewer.id):
            profile.friend_status = FriendStatus.pending_incoming
        return profile

    async def list_users(self, limit: int = 100, offset: int = 0) -> List[User]:
        return await user_repo.list_users(self.session, limit=limit, offset=offset)

    async def create_user(self, payload: UserCreate) -> User:
        """
        Create a user without a password.

        Raises:
            BadRequestError: If the email or the username is already taken
        """
        existing = await user_repo.find_by_email_or_username(self.session, payload.email, payload.username)
        if existing:
            raise BadRequestError("User with this email or username already exists")
        user = await user_repo.create_user(
            self.session,
            username=payload.username,
            email=payload.email,
            name=payload.name,
            bio=payload.bio,
        )
        logger.info(f"Created user {user.id} ({user.username})")
        return user

    async def search(self, viewer: User, query: str) -> List[UserSearchResult]:
        """
        Find users by username or name, leaving out the viewer and their friends.

        Queries shorter than two characters return nothing. Each result says
        whether a request between the viewer and that user is pending.
        """
        term = (query or "").strip().lower()
        if len(term) < MIN_SEARCH_LENGTH:
            return []

        friend_ids = await get_friend_ids(self.session, viewer.id)
        users = await user_repo.search_users(self.session, term, exclude_ids=[viewer.id, *friend_ids])

        results = []
        for u in users:
            pending = (
                await find_pending_request(self.session, viewer.id, u.id) is not None
                or await find_pending_request(self.session, u.id, viewer.id) is not None
            )
            result = UserSearchResult.model_validate(u)
            result.has_pending_request = pending
            results.append(result)
        return results

    async def get_user_detail(self, user_id: UUID) -> UserDetailOut:
        user = await user_repo.get_user(self.session, user_id)
        if not user:
            raise NotFoundError("User not found")
        detail = UserDetailOut.model_validate(user)
        events = await list_upcoming_hosted(self.session, user.id, starts_after=utcnow())
        detail.upcoming_events = [EventOut.model_validate(e) for e in events]
        return detail

    async def update_user(self, user: User, payload: UserUpdate) -> User:
        """
        Update the caller's own profile.

        Raises:
            BadRequestError: If the new username belongs to someone else
        """
        fields = payload.model_dump(exclude_unset=True, exclude_none=True)
        new_username = fields.get("username")
        if new_username and new_username != user.username:
            taken = await user_repo.get_user_by_username(self.session, new_username)
            if taken:
                raise BadRequestError("Username is already taken")
        if not fields:
            return user
        return await user_repo.update_user(self.session, user, **fields)

    async def _remove_stored(self, keys: List[str]) -> None:
        if self.store is None:
            return
        for key in keys:
            try:
                await self.store.delete(key)
            except StorageError as e:
                logger.warning(f"Could not remove stored object {key}: {e}")

    async def delete_user(self, user: User) -> None:
        """
        Delete the caller's account.

        Stored photos of the account (its uploads and every photo on events it
        hosts) and its profile image are removed after the rows are gone.
        """
        keys = await list_storage_keys_for_user(self.session, user.id)
        if user.image_key:
            keys.append(user.image_key)
        await user_repo.delete_user(self.session, user.id)
        logger.info(f"Deleted user {user.id}")
        await self._remove_stored(keys)

    async def set_profile_image(self, user: User, upload: Optional[UploadFile]) -> User:
        """
        Upload a new profile image and replace the previous one.

        Raises:
            BadRequestError: If no image is sent, or it is of a disallowed type or too large
        """
        if upload is None or not upload.filename:
            raise BadRequestError("No image provided")
        data, content_type = await read_image_upload(
            upload,
            PROFILE_IMAGE_TYPES,
            settings.MAX_PROFILE_IMAGE_BYTES,
            type_error="Invalid file type. Only JPEG, PNG, GIF, and WebP are supported",
            size_error="File size exceeds 5MB limit",
        )

        old_key = user.image_key
        key = profile_image_key(user.id, content_type)
        image_url = await self.store.upload(data, key, content_type)
        user = await user_repo.update_user(self.session, user, image=image_url, image_key=key)
        logger.info(f"User {user.id} uploaded profile image {key}")

        if old_key:
            await self._remove_stored([old_key])
        return user

    async def remove_profile_image(self, user: User) -> User:
        old_key = user.image_key
        user = await user_repo.update_user(self.session, user, image=None, image_key=None)
        if old_key:
            await self._remove_stored([old_key])
        return user
