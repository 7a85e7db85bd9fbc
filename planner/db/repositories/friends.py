from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete, and_, or_, union_all
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from planner.db.models import User, FriendRequest, Friendship


async def get_friend_ids(db: AsyncSession, user_id: UUID) -> List[UUID]:
    """
    Collect the ids of everyone the user is friends with.

    A friendship row is stored once per pair, so the user may sit on either
    side of it.
    """
    q = union_all(
        select(Friendship.user_high_id.label("friend_id")).where(Friendship.user_low_id == user_id),
        select(Friendship.user_low_id.label("friend_id")).where(Friendship.user_high_id == user_id),
    )
    res = await db.execute(q)
    return [row[0] for row in res.all()]


async def list_friends(db: AsyncSession, user_id: UUID) -> List[User]:
    friend_ids = await get_friend_ids(db, user_id)
    if not friend_ids:
        return []
    q = select(User).where(User.id.in_(friend_ids)).order_by(User.username)
    res = await db.execute(q)
    return list(res.scalars().all())


async def are_friends(db: AsyncSession, a: UUID, b: UUID) -> bool:
    low, high = Friendship.ordered(a, b)
    q = select(Friendship.id).where(Friendship.user_low_id == low, Friendship.user_high_id == high)
    res = await db.execute(q)
    return res.first() is not None


async def create_friendship(db: AsyncSession, a: UUID, b: UUID) -> Friendship:
    friendship = Friendship.pair(a, b)
    db.add(friendship)
    await db.flush()
    return friendship


async def delete_friendship(db: AsyncSession, a: UUID, b: UUID) -> int:
    low, high = Friendship.ordered(a, b)
    res = await db.execute(
        delete(Friendship).where(Friendship.user_low_id == low, Friendship.user_high_id == high)
    )
    await db.commit()
    return res.rowcount


async def find_pending_request(db: AsyncSession, sender_id: UUID, receiver_id: UUID) -> Optional[FriendRequest]:
    """Pending request sent from ``sender_id`` to ``receiver_id``, if any."""
    q = select(FriendRequest).where(
        FriendRequest.sender_id == sender_id,
        FriendRequest.receiver_id == receiver_id,
        FriendRequest.status == "pending",
    )
    res = await db.execute(q)
    return res.scalars().first()


async def find_request_between(db: AsyncSession, a: UUID, b: UUID) -> Optional[FriendRequest]:
    q = select(FriendRequest).where(
        or_(
            and_(FriendRequest.sender_id == a, FriendRequest.receiver_id == b),
            and_(FriendRequest.sender_id == b, FriendRequest.receiver_id == a),
        )
    )
    res = await db.execute(q)
    return res.scalars().first()


async def list_received_requests(db: AsyncSession, user_id: UUID) -> List[FriendRequest]:
    q = (
        select(FriendRequest)
        .where(FriendRequest.receiver_id == user_id, FriendRequest.status == "pending")
        .options(selectinload(FriendRequest.sender))
        .order_by(FriendRequest.created_at.desc())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return list(res.scalars().all())


async def create_friend_request(db: AsyncSession, sender_id: UUID, receiver_id: UUID) -> FriendRequest:
    request = FriendRequest(sender_id=sender_id, receiver_id=receiver_id, status="pending")
    db.add(request)
    await db.flush()
    return request


async def get_friend_request(db: AsyncSession, request_id: UUID) -> Optional[FriendRequest]:
    q = select(FriendRequest).where(FriendRequest.id == request_id)
    res = await db.execute(q)
    return res.scalars().first()


async def delete_requests_between(db: AsyncSession, a: UUID, b: UUID) -> None:
    """Remove every friend request exchanged between two users, in either direction."""
    await db.execute(
        delete(FriendRequest).where(
            or_(
                and_(FriendRequest.sender_id == a, FriendRequest.receiver_id == b),
                and_(FriendRequest.sender_id == b, FriendRequest.receiver_id == a),
            )
        )
    )
