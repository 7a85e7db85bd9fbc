from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from planner.db.models import Notification, NotificationType
from planner.db.models.attendee import utcnow


async def add_notification(
    db: AsyncSession,
    user_id: UUID,
    message: str,
    source_type: NotificationType,
    link: Optional[str] = None,
    attendee_id: Optional[UUID] = None,
    friend_request_id: Optional[UUID] = None,
) -> Notification:
    """Stage a notification in the current transaction; the caller commits."""
    notification = Notification(
        user_id=user_id,
        message=message,
        source_type=source_type,
        link=link,
        attendee_id=attendee_id,
        friend_request_id=friend_request_id,
    )
    db.add(notification)
    await db.flush()
    return notification


async def list_notifications(
    db: AsyncSession,
    user_id: UUID,
    read: Optional[bool] = None,
    types: Optional[List[NotificationType]] = None,
    limit: int = 20,
    offset: int = 0,
) -> List[Notification]:
    q = select(Notification).where(Notification.user_id == user_id)
    if read is not None:
        q = q.where(Notification.is_read == read)
    if types:
        q = q.where(Notification.source_type.in_(types))
    q = q.order_by(Notification.created_at.desc()).limit(limit).offset(offset)
    res = await db.execute(q)
    return list(res.scalars().all())


async def get_notification(db: AsyncSession, notification_id) -> Optional[Notification]:
    q = select(Notification).where(Notification.id == notification_id)
    res = await db.execute(q)
    return res.scalars().first()


async def mark_read(db: AsyncSession, notification: Notification) -> Notification:
    notification.is_read = True
    notification.read_at = utcnow()
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_read(db: AsyncSession, user_id: UUID) -> int:
    res = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True, read_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return res.rowcount
