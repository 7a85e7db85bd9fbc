"""Database models package."""
from planner.db.models.user import User
from planner.db.models.event import Event, PrivacyLevel
from planner.db.models.attendee import Attendee, RSVPStatus
from planner.db.models.photo import EventPhoto
from planner.db.models.comment import Comment
from planner.db.models.friendship import FriendRequest, Friendship
from planner.db.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "Event",
    "PrivacyLevel",
    "Attendee",
    "RSVPStatus",
    "EventPhoto",
    "Comment",
    "FriendRequest",
    "Friendship",
    "Notification",
    "NotificationType",
]
