from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Uuid, Index
import uuid
from sqlalchemy.orm import relationship
from planner.db.session import Base
from planner.db.models.attendee import utcnow


class EventPhoto(Base):
    __tablename__ = "event_photos"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    image_url = Column(String(1024), nullable=False)
    storage_key = Column(String(512), nullable=False)
    caption = Column(Text, nullable=False, default="")
    uploaded_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User")
    event = relationship("Event", back_populates="photos")

    __table_args__ = (
        Index('idx_photo_event_uploaded', 'event_id', 'uploaded_at'),
    )
