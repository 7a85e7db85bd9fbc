from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime
from enum import Enum

from planner.db.models.event import PrivacyLevel
from planner.db.models.attendee import RSVPStatus
from planner.db.models.notification import NotificationType


class FriendStatus(str, Enum):
    """Relationship of a profile to the viewer."""
    none = "none"
    friends = "friends"
    pending_outgoing = "pending_outgoing"
    pending_incoming = "pending_incoming"


# Auth

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class TokenResponse(BaseModel):
    """Access and refresh token pair returned at login."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class MobileTokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    username: str = Field(..., min_length=3, max_length=64)
    name: Optional[str] = None


# Users

class UserSummary(BaseModel):
    id: UUID
    name: Optional[str] = None
    username: str
    image: Optional[str] = None

    class Config:
        from_attributes = True

class UserOut(BaseModel):
    id: UUID
    name: Optional[str] = None
    username: str
    email: Optional[str] = None
    image: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=64)
    bio: Optional[str] = None

class UserUpdate(BaseModel):
    name: Optional[str] = None
    bio: Optional[str] = None
    username: Optional[str] = Field(None, min_length=3, max_length=64)

class ProfileOut(UserOut):
    is_current_user: bool = False
    friend_status: FriendStatus = FriendStatus.none

class ProfileResponse(BaseModel):
    user: ProfileOut

class ProfileImageResponse(BaseModel):
    message: str
    image: Optional[str] = None
    user: UserOut

class UserSearchResult(UserSummary):
    has_pending_request: bool = False

class UserSearchResponse(BaseModel):
    users: List[UserSearchResult]


# Events

class EventCreate(BaseModel):
    name: str = Field(..., min_length=1)
    date: datetime
    time: str = Field(..., pattern=r"^(([0-1]?[0-9]|2[0-3]):[0-5][0-9]|ALL_DAY)$")
    location: str = Field(..., min_length=1)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    capacity: Optional[int] = Field(None, ge=1)
    privacy_level: PrivacyLevel = PrivacyLevel.PUBLIC
    invite_friends: List[UUID] = []

class EventUpdate(BaseModel):
    """Fields a host may change; omitted fields keep their value."""
    name: Optional[str] = Field(None, min_length=1)
    date: Optional[datetime] = None
    time: Optional[str] = Field(None, pattern=r"^(([0-1]?[0-9]|2[0-3]):[0-5][0-9]|ALL_DAY)$")
    location: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    duration: Optional[int] = Field(None, ge=1)
    capacity: Optional[int] = Field(None, ge=1)
    privacy_level: Optional[PrivacyLevel] = None

class EventOut(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    location: str
    date: datetime
    time: str
    duration: int
    capacity: Optional[int] = None
    privacy_level: PrivacyLevel
    host_id: UUID
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AttendeeOut(BaseModel):
    id: UUID
    user_id: UUID
    event_id: UUID
    rsvp: RSVPStatus
    invite_method: Optional[str] = None
    response_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AttendeeWithUser(AttendeeOut):
    user: UserSummary

class EventWithHost(EventOut):
    host: UserSummary

class EventDetail(EventWithHost):
    attendees: List[AttendeeWithUser] = []

class EventAttendeesOut(BaseModel):
    event: EventWithHost
    attendees: List[AttendeeWithUser]

class InvitationOut(AttendeeOut):
    event: EventWithHost


# Attendance

class InviteRequest(BaseModel):
    username: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True

class AttendeeRSVPUpdate(BaseModel):
    """Value set accepted by the attendees endpoint."""
    rsvp: Literal["YES", "NO", "MAYBE"]

class RSVPRequest(BaseModel):
    """Value set accepted by the rsvp endpoint, which also allows resetting to PENDING."""
    rsvp: RSVPStatus

class RSVPStatusOut(BaseModel):
    is_attending: bool
    rsvp: Optional[RSVPStatus] = None
    event_name: str
    is_host: bool

class MessageResponse(BaseModel):
    message: str


# Photos

class PhotoOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    image_url: str
    caption: str
    uploaded_at: datetime
    user: UserSummary

    class Config:
        from_attributes = True


# Comments

class CommentCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)

    class Config:
        str_strip_whitespace = True

class CommentOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    text: str
    created_at: datetime
    user: UserSummary

    class Config:
        from_attributes = True


# Friends

class FriendRequestCreate(BaseModel):
    username: str = Field(..., min_length=1)

    class Config:
        str_strip_whitespace = True

class FriendRequestAction(BaseModel):
    request_id: UUID
    action: Literal["accept", "decline"]

class FriendRequestOut(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    status: str
    created_at: Optional[datetime] = None
    sender: UserSummary

    class Config:
        from_attributes = True

class FriendsOut(BaseModel):
    friends: List[UserSummary]
    pending_requests: List[FriendRequestOut]

class UserDetailOut(UserSummary):
    bio: Optional[str] = None
    upcoming_events: List[EventOut] = []


# Notifications

class NotificationOut(BaseModel):
    id: UUID
    user_id: UUID
    message: str
    link: Optional[str] = None
    source_type: NotificationType
    is_read: bool
    read_at: Optional[datetime] = None
    attendee_id: Optional[UUID] = None
    friend_request_id: Optional[UUID] = None
    created_at: datetime

    class Config:
        from_attributes = True
