from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, func, Index, UniqueConstraint, CheckConstraint
import uuid
from sqlalchemy.orm import relationship
from planner.db.session import Base


class FriendRequest(Base):
    __tablename__ = "friend_requests"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    receiver_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])

    __table_args__ = (
        Index('idx_friend_request_sender', 'sender_id'),
        Index('idx_friend_request_receiver', 'receiver_id'),
    )


class Friendship(Base):
    """
    Symmetric friendship stored once per pair.

    The two member ids are kept in canonical order (``user_low_id`` sorts
    before ``user_high_id``); use ``Friendship.pair`` to build a row.
    """
    __tablename__ = "friendships"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_low_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    user_high_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('user_low_id', 'user_high_id', name='uq_friendship_pair'),
        CheckConstraint('user_low_id < user_high_id', name='ck_friendship_canonical_order'),
        Index('idx_friendship_high', 'user_high_id'),
    )

    @staticmethod
    def ordered(a: uuid.UUID, b: uuid.UUID):
        """Return the two ids in canonical storage order."""
        return (a, b) if str(a) < str(b) else (b, a)

    @classmethod
    def pair(cls, a: uuid.UUID, b: uuid.UUID) -> "Friendship":
        low, high = cls.ordered(a, b)
        return cls(user_low_id=low, user_high_id=high)
