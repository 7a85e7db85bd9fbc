from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Uuid, Enum, Index
import uuid
from planner.db.session import Base
from planner.db.models.attendee import utcnow
import enum


class NotificationType(str, enum.Enum):
    ATTENDEE = "ATTENDEE"
    FRIEND_REQUEST = "FRIEND_REQUEST"
    EVENT_UPDATE = "EVENT_UPDATE"
    EVENT_CANCELLED = "EVENT_CANCELLED"
    PRIVATE_INVITATION = "PRIVATE_INVITATION"
    SYSTEM = "SYSTEM"


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(512), nullable=True)
    source_type = Column(Enum(NotificationType), nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    attendee_id = Column(Uuid, ForeignKey("attendees.id", ondelete="SET NULL"), nullable=True)
    friend_request_id = Column(Uuid, ForeignKey("friend_requests.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index('idx_notification_user_created', 'user_id', 'created_at'),
    )
