from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from planner.db.models import (
    Event,
    Attendee,
    Comment,
    EventPhoto,
    Notification,
    PrivacyLevel,
    RSVPStatus,
)


def _with_host_and_attendees(q):
    return q.options(
        selectinload(Event.host),
        selectinload(Event.attendees).selectinload(Attendee.user),
    ).execution_options(populate_existing=True)


def visible_to(viewer_id: UUID, friend_ids: List[UUID]):
    """
    Boolean predicate selecting the events a viewer may see.

    An event is visible when the viewer hosts it, has answered YES or MAYBE,
    the event is public, it is friends-only and hosted by one of
    ``friend_ids``, or it is private and the viewer holds any attendee row on
    it (a pending invitation counts).

    Args:
        viewer_id: The user the list is computed for
        friend_ids: The viewer's friend ids, resolved once per request

    Returns:
        SQLAlchemy boolean clause
    """
    return or_(
        Event.host_id == viewer_id,
        Event.attendees.any(
            and_(
                Attendee.user_id == viewer_id,
                Attendee.rsvp.in_([RSVPStatus.YES, RSVPStatus.MAYBE]),
            )
        ),
        Event.privacy_level == PrivacyLevel.PUBLIC,
        and_(
            Event.privacy_level == PrivacyLevel.FRIENDS_ONLY,
            Event.host_id.in_(friend_ids),
        ),
        and_(
            Event.privacy_level == PrivacyLevel.PRIVATE,
            Event.attendees.any(Attendee.user_id == viewer_id),
        ),
    )


async def list_visible_events(
    db: AsyncSession,
    viewer_id: UUID,
    friend_ids: List[UUID],
    starts_after: datetime,
    limit: int = 10,
) -> List[Event]:
    """
    Upcoming events visible to a viewer, soonest first.

    Args:
        db: Database session
        viewer_id: Id of the requesting user
        friend_ids: Precomputed friend ids of the viewer
        starts_after: Only events dated at or after this instant are returned
        limit: Page size

    Returns:
        Events with host and attendees (and their users) loaded
    """
    q = (
        select(Event)
        .where(Event.date >= starts_after, visible_to(viewer_id, friend_ids))
        .order_by(Event.date.asc())
        .limit(limit)
    )
    res = await db.execute(_with_host_and_attendees(q))
    return list(res.scalars().all())


async def list_public_events(db: AsyncSession, starts_after: datetime, limit: int = 10) -> List[Event]:
    """Upcoming public events for anonymous visitors, soonest first."""
    q = (
        select(Event)
        .where(Event.date >= starts_after, Event.privacy_level == PrivacyLevel.PUBLIC)
        .order_by(Event.date.asc())
        .limit(limit)
    )
    res = await db.execute(_with_host_and_attendees(q))
    return list(res.scalars().all())


async def get_event(db: AsyncSession, event_id) -> Optional[Event]:
    """Fetch an event row without relationships."""
    q = select(Event).where(Event.id == event_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_event_with_attendees(db: AsyncSession, event_id) -> Optional[Event]:
    q = select(Event).where(Event.id == event_id)
    res = await db.execute(_with_host_and_attendees(q))
    return res.scalars().first()


async def list_upcoming_hosted(db: AsyncSession, host_id: UUID, starts_after: datetime, limit: int = 5) -> List[Event]:
    q = (
        select(Event)
        .where(Event.host_id == host_id, Event.date >= starts_after)
        .order_by(Event.date.asc())
        .limit(limit)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_event(db: AsyncSession, host_id: UUID, **fields) -> Event:
    """
    Insert an event and flush it so its id is available.

    The caller commits once the host attendance and invitations are added.
    """
    ev = Event(host_id=host_id, **fields)
    db.add(ev)
    await db.flush()
    return ev


async def update_event(db: AsyncSession, event: Event, **fields) -> Event:
    """Apply field changes to an event and flush; the caller commits."""
    for key, value in fields.items():
        setattr(event, key, value)
    await db.flush()
    return event


async def delete_event(db: AsyncSession, event_id: UUID) -> None:
    """Delete an event with its attendees, photos, comments and attendee notifications."""
    attendee_ids = select(Attendee.id).where(Attendee.event_id == event_id).scalar_subquery()
    await db.execute(delete(Notification).where(Notification.attendee_id.in_(attendee_ids)))
    await db.execute(delete(Comment).where(Comment.event_id == event_id))
    await db.execute(delete(EventPhoto).where(EventPhoto.event_id == event_id))
    await db.execute(delete(Attendee).where(Attendee.event_id == event_id))
    await db.execute(delete(Event).where(Event.id == event_id))
