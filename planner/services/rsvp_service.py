from typing import List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from planner.core.exceptions import NotFoundError
from planner.core.logging import logger
from planner.db.models import Attendee, Event, RSVPStatus, User
from planner.db.repositories import attendees as attendee_repo
from planner.db.repositories.events import get_event, get_event_with_attendees
from planner.db.repositories.users import get_user_by_username
from planner.schemas import RSVPStatusOut
from planner.services.notification_service import NotificationService


class RSVPService:
    """
    Invitations and RSVP answers.

    Every write is keyed by the (user, event) pair, so a user holds at most
    one attendance record per event. Self-service RSVP operations always act
    on the caller's own record.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.notifications = NotificationService(session)

    async def _require_event(self, event_id: UUID) -> Event:
        event = await get_event(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    async def invite(self, event_id: UUID, username: str, inviter: User) -> Tuple[Attendee, bool]:
        """
        Invite a user, by username, to an event.

        Creates a PENDING record when the user has none. An existing record is
        returned unchanged, whatever its answer.

        Returns:
            Tuple of (attendee, created)

        Raises:
            NotFoundError: If the event or the username does not exist
        """
        event = await self._require_event(event_id)
        invitee = await get_user_by_username(self.session, username)
        if not invitee:
            raise NotFoundError("User not found")

        attendee, created = await attendee_repo.add_pending_attendee(
            self.session, invitee.id, event.id, invite_method="username"
        )
        staged = []
        if created:
            staged.append(
                await self.notifications.notify_invitation(
                    user_id=invitee.id,
                    attendee_id=attendee.id,
                    event_id=event.id,
                    event_name=event.name,
                    host_name=inviter.name or inviter.username,
                    privacy_level=event.privacy_level,
                )
            )
        await self.session.commit()
        await self.notifications.dispatch(staged)

        if created:
            logger.info(f"User {inviter.id} invited {invitee.id} to event {event.id}")
        return attendee, created

    async def list_attendees(self, event_id: UUID) -> Event:
        event = await get_event_with_attendees(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    async def set_rsvp(self, event_id: UUID, user_id: UUID, rsvp: RSVPStatus) -> Attendee:
        """
        Create or overwrite the caller's RSVP on an event.

        Raises:
            NotFoundError: If the event does not exist
        """
        await self._require_event(event_id)
        attendee = await attendee_repo.upsert_rsvp(self.session, user_id, event_id, rsvp)
        logger.info(f"User {user_id} RSVP'd {rsvp.value} to event {event_id}")
        return attendee

    async def get_rsvp_status(self, event_id: UUID, user_id: UUID) -> RSVPStatusOut:
        event = await self._require_event(event_id)
        attendee = await attendee_repo.get_attendee(self.session, user_id, event_id)
        return RSVPStatusOut(
            is_attending=attendee is not None,
            rsvp=attendee.rsvp if attendee else None,
            event_name=event.name,
            is_host=event.host_id == user_id,
        )

    async def cancel_rsvp(self, event_id: UUID, user_id: UUID) -> None:
        """
        Remove the caller's attendance record.

        Raises:
            NotFoundError: If the caller has no record on the event, or the event is gone
        """
        attendee = await attendee_repo.get_attendee(self.session, user_id, event_id)
        if not attendee:
            raise NotFoundError("RSVP not found")
        await self._require_event(event_id)
        await attendee_repo.delete_attendee(self.session, attendee)
        logger.info(f"User {user_id} removed attendance from event {event_id}")

    async def list_invitations(self, user_id: UUID) -> List[Attendee]:
        return await attendee_repo.list_pending_invitations(self.session, user_id)
