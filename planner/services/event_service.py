from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.config import settings
from planner.core.exceptions import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from planner.core.logging import logger
from planner.db.models import Comment, Event, NotificationType, PrivacyLevel, User
from planner.db.models.attendee import utcnow
from planner.db.repositories import comments as comment_repo
from planner.db.repositories import events as event_repo
from planner.db.repositories.attendees import add_host_attendee, add_pending_attendee, list_attendee_user_ids
from planner.db.repositories.friends import are_friends, get_friend_ids
from planner.db.repositories.photos import list_storage_keys_for_event
from planner.schemas import EventCreate, EventUpdate
from planner.services.notification_service import NotificationService
from planner.storage.object_store import ObjectStore, StorageError

ALL_DAY = "ALL_DAY"
ALL_DAY_MINUTES = 1440
DEFAULT_DURATION_MINUTES = 30


def as_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EventService:
    def __init__(self, session: AsyncSession, store: Optional[ObjectStore] = None):
        self.session = session
        self.store = store
        self.notifications = NotificationService(session)

    async def list_feed(self, viewer_id: UUID) -> List[Event]:
        """
        Upcoming events the viewer is allowed to see.

        The viewer's friend ids are resolved once and passed into the
        visibility predicate, which the database evaluates for every event.
        """
        friend_ids = await get_friend_ids(self.session, viewer_id)
        return await event_repo.list_visible_events(
            self.session,
            viewer_id=viewer_id,
            friend_ids=friend_ids,
            starts_after=utcnow(),
            limit=settings.FEED_PAGE_SIZE,
        )

    async def list_public(self) -> List[Event]:
        return await event_repo.list_public_events(
            self.session, starts_after=utcnow(), limit=settings.FEED_PAGE_SIZE
        )

    async def create_event(self, payload: EventCreate, host: User) -> Event:
        """
        Create an event hosted by ``host``.

        The host is recorded as attending (YES). Users listed in
        ``invite_friends`` get a PENDING invitation, but only if they are
        friends of the host.

        Raises:
            BadRequestError: If the event date is not in the future
        """
        event_date = as_utc(payload.date)
        if event_date < utcnow():
            raise BadRequestError("Event date must be in the future")

        if payload.time == ALL_DAY:
            time, duration = "00:00", ALL_DAY_MINUTES
        else:
            time, duration = payload.time, payload.duration or DEFAULT_DURATION_MINUTES

        event = await event_repo.create_event(
            self.session,
            host.id,
            name=payload.name,
            description=payload.description,
            location=payload.location,
            date=event_date,
            time=time,
            duration=duration,
            capacity=payload.capacity,
            privacy_level=payload.privacy_level,
        )
        await add_host_attendee(self.session, host.id, event.id)

        staged = []
        if payload.invite_friends:
            friend_ids = set(await get_friend_ids(self.session, host.id))
            invite_method = "private_invite" if payload.privacy_level == PrivacyLevel.PRIVATE else "direct"
            for user_id in dict.fromkeys(payload.invite_friends):
                if user_id not in friend_ids:
                    logger.debug(f"Skipping invitation of non-friend {user_id} to event {event.id}")
                    continue
                attendee, created = await add_pending_attendee(self.session, user_id, event.id, invite_method)
                if created:
                    staged.append(
                        await self.notifications.notify_invitation(
                            user_id=user_id,
                            attendee_id=attendee.id,
                            event_id=event.id,
                            event_name=event.name,
                            host_name=host.name or host.username,
                            privacy_level=payload.privacy_level,
                        )
                    )

        await self.session.commit()
        await self.notifications.dispatch(staged)
        logger.info(f"User {host.id} created event {event.id} with {len(staged)} invitations")
        return await event_repo.get_event_with_attendees(self.session, event.id)

    async def get_event_for_viewer(self, event_id: UUID, viewer: Optional[User]) -> Event:
        """
        Event detail, enforcing the event's privacy level.

        Anonymous viewers only see public events. Private events require an
        attendance record; friends-only events require friendship with the
        host or an attendance record.
        """
        event = await event_repo.get_event_with_attendees(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")

        if viewer is None:
            if event.privacy_level != PrivacyLevel.PUBLIC:
                raise UnauthorizedError("You must be logged in to view this event")
            return event

        if event.host_id == viewer.id:
            return event

        is_invited = any(a.user_id == viewer.id for a in event.attendees)
        if event.privacy_level == PrivacyLevel.PRIVATE and not is_invited:
            raise ForbiddenError("You do not have permission to view this private event")
        if event.privacy_level == PrivacyLevel.FRIENDS_ONLY and not is_invited:
            if not await are_friends(self.session, event.host_id, viewer.id):
                raise ForbiddenError("This event is only visible to friends of the host")
        return event

    async def update_event(self, event_id: UUID, payload: EventUpdate, user: User) -> Event:
        """
        Change an event; only its host may do so.

        Omitted fields keep their value. ``ALL_DAY`` sets the time to 00:00
        and the duration to a full day. Attendees other than the host are told
        the event changed.

        Raises:
            NotFoundError: If the event does not exist
            ForbiddenError: If the caller is not the host
            BadRequestError: If a new date is not in the future
        """
        event = await event_repo.get_event(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        if event.host_id != user.id:
            raise ForbiddenError("You are not authorized to update this event")

        fields = payload.model_dump(exclude_unset=True, exclude_none=True)
        if "date" in fields:
            fields["date"] = as_utc(fields["date"])
            if fields["date"] < utcnow():
                raise BadRequestError("Event date must be in the future")
        if fields.get("time") == ALL_DAY:
            fields["time"] = "00:00"
            fields["duration"] = ALL_DAY_MINUTES
        elif "time" in fields and "duration" not in fields and event.duration == ALL_DAY_MINUTES:
            fields["duration"] = DEFAULT_DURATION_MINUTES

        if not fields:
            return await event_repo.get_event_with_attendees(self.session, event.id)

        await event_repo.update_event(self.session, event, **fields)
        staged = []
        for _, attendee_user_id in await list_attendee_user_ids(self.session, event.id):
            if attendee_user_id == user.id:
                continue
            staged.append(
                await self.notifications.notify(
                    attendee_user_id,
                    f"{event.name} has been updated",
                    NotificationType.EVENT_UPDATE,
                    link=f"/events/{event.id}",
                )
            )
        await self.session.commit()
        await self.notifications.dispatch(staged)
        logger.info(f"User {user.id} updated event {event.id}: {sorted(fields)}")
        return await event_repo.get_event_with_attendees(self.session, event.id)

    async def list_comments(self, event_id: UUID, viewer: User) -> List[Comment]:
        """Comments of an event the viewer may see, oldest first."""
        event = await self.get_event_for_viewer(event_id, viewer)
        return await comment_repo.list_comments_for_event(self.session, event.id)

    async def add_comment(self, event_id: UUID, text: str, author: User) -> Comment:
        event = await self.get_event_for_viewer(event_id, author)
        comment = await comment_repo.create_comment(self.session, event.id, author.id, text)
        logger.info(f"User {author.id} commented on event {event.id}")
        return comment

    async def delete_event(self, event_id: UUID, user: User) -> None:
        """
        Delete an event; only its host may do so.

        Stored photo objects are removed after the database rows. Former
        attendees are told the event was cancelled.
        """
        event = await event_repo.get_event(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        if event.host_id != user.id:
            raise ForbiddenError("You are not authorized to delete this event")

        storage_keys = await list_storage_keys_for_event(self.session, event.id)
        attendees = await list_attendee_user_ids(self.session, event.id)
        event_name = event.name

        await event_repo.delete_event(self.session, event.id)
        staged = []
        for _, attendee_user_id in attendees:
            if attendee_user_id == user.id:
                continue
            staged.append(
                await self.notifications.notify(
                    attendee_user_id,
                    f"{event_name} has been cancelled",
                    NotificationType.EVENT_CANCELLED,
                )
            )
        await self.session.commit()
        await self.notifications.dispatch(staged)
        logger.info(f"User {user.id} deleted event {event_id}")

        if self.store is not None:
            for key in storage_keys:
                try:
                    await self.store.delete(key)
                except StorageError as e:
                    logger.warning(f"Could not remove stored object {key}: {e}")
