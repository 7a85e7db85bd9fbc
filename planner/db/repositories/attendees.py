from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from planner.db.models import Attendee, Event, RSVPStatus
from planner.db.models.attendee import utcnow
from planner.db.repositories import insert_for


async def get_attendee(db: AsyncSession, user_id, event_id) -> Optional[Attendee]:
    """
    Retrieve the attendance record of a user on an event.

    Args:
        db: Database session
        user_id: User's UUID
        event_id: Event's UUID

    Returns:
        Attendee object if found, None otherwise
    """
    q = (
        select(Attendee)
        .where(Attendee.user_id == user_id, Attendee.event_id == event_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalars().first()


async def add_pending_attendee(
    db: AsyncSession,
    user_id: UUID,
    event_id: UUID,
    invite_method: Optional[str] = None,
) -> Tuple[Attendee, bool]:
    """
    Insert a PENDING attendance record unless one already exists.

    An existing record keeps its answer: inviting someone twice never
    downgrades their RSVP back to PENDING.

    Returns:
        Tuple of (attendee, created) where ``created`` is False for an existing row
    """
    now = utcnow()
    stmt = (
        insert_for(db, Attendee)
        .values(
            user_id=user_id,
            event_id=event_id,
            rsvp=RSVPStatus.PENDING,
            invite_method=invite_method,
            created_at=now,
            updated_at=now,
        )
        .on_conflict_do_nothing(index_elements=["user_id", "event_id"])
        .returning(Attendee.id)
    )
    res = await db.execute(stmt)
    created = res.scalar_one_or_none() is not None
    await db.flush()
    attendee = await get_attendee(db, user_id, event_id)
    return attendee, created


async def upsert_rsvp(db: AsyncSession, user_id: UUID, event_id: UUID, rsvp: RSVPStatus) -> Attendee:
    """
    Create or overwrite a user's RSVP on an event.

    Concurrent writers for the same pair are serialised by the unique
    constraint; the last write wins.
    """
    now = utcnow()
    stmt = insert_for(db, Attendee).values(
        user_id=user_id,
        event_id=event_id,
        rsvp=rsvp,
        response_time=now,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "event_id"],
        set_={
            "rsvp": stmt.excluded.rsvp,
            "response_time": stmt.excluded.response_time,
            "updated_at": stmt.excluded.updated_at,
        },
    )
    await db.execute(stmt)
    await db.commit()
    return await get_attendee(db, user_id, event_id)


async def add_host_attendee(db: AsyncSession, host_id: UUID, event_id: UUID) -> Attendee:
    attendee = Attendee(user_id=host_id, event_id=event_id, rsvp=RSVPStatus.YES, response_time=utcnow())
    db.add(attendee)
    await db.flush()
    return attendee


async def delete_attendee(db: AsyncSession, attendee: Attendee) -> None:
    await db.delete(attendee)
    await db.commit()


async def list_attendees_for_event(db: AsyncSession, event_id) -> List[Attendee]:
    q = (
        select(Attendee)
        .where(Attendee.event_id == event_id)
        .options(selectinload(Attendee.user))
        .order_by(Attendee.created_at.asc())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_pending_invitations(db: AsyncSession, user_id: UUID) -> List[Attendee]:
    """PENDING attendance records of a user with the event and its host loaded, newest first."""
    q = (
        select(Attendee)
        .where(Attendee.user_id == user_id, Attendee.rsvp == RSVPStatus.PENDING)
        .options(selectinload(Attendee.event).selectinload(Event.host))
        .order_by(Attendee.created_at.desc())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_attendee_user_ids(db: AsyncSession, event_id: UUID) -> List[Tuple[UUID, UUID]]:
    """(attendee id, user id) pairs for every attendance record on an event."""
    q = select(Attendee.id, Attendee.user_id).where(Attendee.event_id == event_id)
    res = await db.execute(q)
    return [(row[0], row[1]) for row in res.all()]
