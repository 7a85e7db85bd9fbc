from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from planner.db.models import Event, EventPhoto


async def list_photos_for_event(db: AsyncSession, event_id) -> List[EventPhoto]:
    """Photos of an event with their uploaders, most recent upload first."""
    q = (
        select(EventPhoto)
        .where(EventPhoto.event_id == event_id)
        .options(selectinload(EventPhoto.user))
        .order_by(EventPhoto.uploaded_at.desc())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def list_storage_keys_for_event(db: AsyncSession, event_id: UUID) -> List[str]:
    q = select(EventPhoto.storage_key).where(EventPhoto.event_id == event_id)
    res = await db.execute(q)
    return [row[0] for row in res.all()]


async def list_storage_keys_for_user(db: AsyncSession, user_id: UUID) -> List[str]:
    """Keys of photos the user uploaded or that belong to events the user hosts."""
    hosted = select(Event.id).where(Event.host_id == user_id).scalar_subquery()
    q = select(EventPhoto.storage_key).where(
        or_(EventPhoto.user_id == user_id, EventPhoto.event_id.in_(hosted))
    )
    res = await db.execute(q)
    return [row[0] for row in res.all()]


async def get_photo(db: AsyncSession, event_id, photo_id) -> Optional[EventPhoto]:
    q = (
        select(EventPhoto)
        .where(EventPhoto.id == photo_id, EventPhoto.event_id == event_id)
        .options(selectinload(EventPhoto.user))
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalars().first()


async def create_photo(
    db: AsyncSession,
    event_id: UUID,
    user_id: UUID,
    image_url: str,
    storage_key: str,
    caption: str = "",
) -> EventPhoto:
    photo = EventPhoto(
        event_id=event_id,
        user_id=user_id,
        image_url=image_url,
        storage_key=storage_key,
        caption=caption,
    )
    db.add(photo)
    await db.commit()
    return await get_photo(db, event_id, photo.id)


async def delete_photo(db: AsyncSession, photo: EventPhoto) -> None:
    await db.delete(photo)
    await db.commit()
