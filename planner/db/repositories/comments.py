from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from planner.db.models import Comment


async def list_comments_for_event(db: AsyncSession, event_id: UUID) -> List[Comment]:
    """Comments of an event with their authors, oldest first."""
    q = (
        select(Comment)
        .where(Comment.event_id == event_id)
        .options(selectinload(Comment.user))
        .order_by(Comment.created_at.asc())
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_comment(db: AsyncSession, event_id: UUID, user_id: UUID, text: str) -> Comment:
    comment = Comment(event_id=event_id, user_id=user_id, text=text)
    db.add(comment)
    await db.commit()
    q = (
        select(Comment)
        .where(Comment.id == comment.id)
        .options(selectinload(Comment.user))
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalars().one()
