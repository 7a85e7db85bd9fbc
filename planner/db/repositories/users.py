from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from planner.db.models import (
    User,
    Event,
    Attendee,
    Comment,
    EventPhoto,
    FriendRequest,
    Friendship,
    Notification,
)


async def create_user(
    db: AsyncSession,
    username: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    bio: Optional[str] = None,
    hashed_password: Optional[str] = None,
) -> User:
    """
    Create a new user.

    Args:
        db: Database session
        username: Unique handle used for lookups
        email: Optional unique email address
        name: Display name
        bio: Free-form profile text
        hashed_password: Password hash for locally registered accounts

    Returns:
        Created User object
    """
    user = User(username=username, email=email, name=name, bio=bio, hashed_password=hashed_password)
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id) -> Optional[User]:
    q = select(User).where(User.id == user_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user_by_username(db: AsyncSession, username: str) -> Optional[User]:
    q = select(User).where(User.username == username)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email)
    res = await db.execute(q)
    return res.scalars().first()


async def find_by_email_or_username(db: AsyncSession, email: Optional[str], username: str) -> Optional[User]:
    """Return any user already holding the given email or username."""
    clauses = [User.username == username]
    if email:
        clauses.append(User.email == email)
    q = select(User).where(or_(*clauses))
    res = await db.execute(q)
    return res.scalars().first()


async def list_users(db: AsyncSession, limit: int = 100, offset: int = 0) -> List[User]:
    q = select(User).order_by(User.created_at.desc(), User.username).limit(limit).offset(offset)
    res = await db.execute(q)
    return list(res.scalars().all())


async def search_users(
    db: AsyncSession,
    query: str,
    exclude_ids: List[UUID],
    limit: int = 10,
) -> List[User]:
    """
    Case-insensitive search on username and display name.

    Args:
        db: Database session
        query: Lowercased search term
        exclude_ids: Users to leave out of the results (the caller and their friends)
        limit: Maximum number of results

    Returns:
        Matching users ordered by username
    """
    pattern = f"%{query}%"
    q = (
        select(User)
        .where(
            or_(
                func.lower(User.username).like(pattern),
                func.lower(func.coalesce(User.name, "")).like(pattern),
            )
        )
        .order_by(User.username)
        .limit(limit)
    )
    if exclude_ids:
        q = q.where(User.id.not_in(exclude_ids))
    res = await db.execute(q)
    return list(res.scalars().all())


async def update_user(db: AsyncSession, user: User, **fields) -> User:
    for key, value in fields.items():
        setattr(user, key, value)
    await db.commit()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: UUID) -> None:
    """
    Delete a user together with every row that references them.

    Events the user hosts are removed with their attendees, photos and
    comments. Stored objects are left to the caller.
    """
    hosted = select(Event.id).where(Event.host_id == user_id).scalar_subquery()
    attendee_ids = select(Attendee.id).where(
        or_(Attendee.user_id == user_id, Attendee.event_id.in_(hosted))
    ).scalar_subquery()
    request_ids = select(FriendRequest.id).where(
        or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id)
    ).scalar_subquery()

    await db.execute(
        delete(Notification).where(
            or_(
                Notification.user_id == user_id,
                Notification.attendee_id.in_(attendee_ids),
                Notification.friend_request_id.in_(request_ids),
            )
        )
    )
    await db.execute(
        delete(Comment).where(or_(Comment.user_id == user_id, Comment.event_id.in_(hosted)))
    )
    await db.execute(
        delete(EventPhoto).where(or_(EventPhoto.user_id == user_id, EventPhoto.event_id.in_(hosted)))
    )
    await db.execute(
        delete(Attendee).where(or_(Attendee.user_id == user_id, Attendee.event_id.in_(hosted)))
    )
    await db.execute(delete(Event).where(Event.host_id == user_id))
    await db.execute(
        delete(FriendRequest).where(
            or_(FriendRequest.sender_id == user_id, FriendRequest.receiver_id == user_id)
        )
    )
    await db.execute(
        delete(Friendship).where(
            or_(Friendship.user_low_id == user_id, Friendship.user_high_id == user_id)
        )
    )
    await db.execute(delete(User).where(User.id == user_id))
    await db.commit()
