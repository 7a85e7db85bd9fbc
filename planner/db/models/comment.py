from sqlalchemy import Column, Text, DateTime, ForeignKey, Uuid, Index
import uuid
from sqlalchemy.orm import relationship
from planner.db.session import Base
from planner.db.models.attendee import utcnow


class Comment(Base):
    __tablename__ = "comments"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid, ForeignKey("events.id"), nullable=False)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user = relationship("User")

    __table_args__ = (
        Index('idx_comment_event_created', 'event_id', 'created_at'),
    )
