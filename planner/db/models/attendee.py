from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid, Enum, Index, UniqueConstraint
import uuid
from sqlalchemy.orm import relationship
from planner.db.session import Base
import enum


class RSVPStatus(str, enum.Enum):
    PENDING = "PENDING"
    YES = "YES"
    NO = "NO"
    MAYBE = "MAYBE"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Attendee(Base):
    __tablename__ = "attendees"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    rsvp = Column(Enum(RSVPStatus), default=RSVPStatus.PENDING, nullable=False)
    invite_method = Column(String(32), nullable=True)
    response_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User")
    event = relationship("Event", back_populates="attendees")

    # One attendance record per user per event; upserts conflict on this pair
    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_attendee_user_event'),
        Index('idx_attendee_user', 'user_id'),
        Index('idx_attendee_event', 'event_id'),
    )
