from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Uuid, func, Enum, Index
import uuid
from sqlalchemy.orm import relationship
from planner.db.session import Base
import enum


class PrivacyLevel(str, enum.Enum):
    """Who may see an event besides its host and invitees."""
    PUBLIC = "PUBLIC"
    FRIENDS_ONLY = "FRIENDS_ONLY"
    PRIVATE = "PRIVATE"


class Event(Base):
    __tablename__ = "events"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False)
    time = Column(String(5), nullable=False, default="00:00")
    duration = Column(Integer, nullable=False, default=30)
    capacity = Column(Integer, nullable=True)
    privacy_level = Column(Enum(PrivacyLevel), nullable=False, default=PrivacyLevel.PUBLIC)
    host_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    host = relationship("User")
    attendees = relationship("Attendee", back_populates="event", order_by="Attendee.created_at")
    photos = relationship("EventPhoto", back_populates="event")

    # Indexes for frequently queried fields
    __table_args__ = (
        Index('idx_event_date', 'date'),
        Index('idx_event_host', 'host_id'),
        Index('idx_event_privacy', 'privacy_level'),
    )
