"""Initial planner schema

Revision ID: 3c5e8a1d2f47
Revises: 
Create Date: 2026-10-17 10:12:08.412903

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c5e8a1d2f47'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PRIVACY_LEVELS = ('PUBLIC', 'FRIENDS_ONLY', 'PRIVATE')
RSVP_STATUSES = ('PENDING', 'YES', 'NO', 'MAYBE')
NOTIFICATION_TYPES = (
    'ATTENDEE', 'FRIEND_REQUEST', 'EVENT_UPDATE', 'EVENT_CANCELLED', 'PRIVATE_INVITATION', 'SYSTEM',
)


def upgrade() -> None:
    privacy_enum = postgresql.ENUM(*PRIVACY_LEVELS, name='privacylevel')
    privacy_enum.create(op.get_bind())
    rsvp_enum = postgresql.ENUM(*RSVP_STATUSES, name='rsvpstatus')
    rsvp_enum.create(op.get_bind())
    notification_enum = postgresql.ENUM(*NOTIFICATION_TYPES, name='notificationtype')
    notification_enum.create(op.get_bind())

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('username', sa.String(64), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('image', sa.String(1024), nullable=True),
        sa.Column('bio', sa.Text, nullable=True),
        sa.Column('hashed_password', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('location', sa.String(255), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('time', sa.String(5), nullable=False, server_default='00:00'),
        sa.Column('duration', sa.Integer, nullable=False, server_default='30'),
        sa.Column('capacity', sa.Integer, nullable=True),
        sa.Column('privacy_level', postgresql.ENUM(*PRIVACY_LEVELS, name='privacylevel', create_type=False),
                  nullable=False, server_default='PUBLIC'),
        sa.Column('host_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_event_date', 'events', ['date'])
    op.create_index('idx_event_host', 'events', ['host_id'])
    op.create_index('idx_event_privacy', 'events', ['privacy_level'])

    op.create_table(
        'attendees',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('rsvp', postgresql.ENUM(*RSVP_STATUSES, name='rsvpstatus', create_type=False),
                  nullable=False, server_default='PENDING'),
        sa.Column('invite_method', sa.String(32), nullable=True),
        sa.Column('response_time', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('user_id', 'event_id', name='uq_attendee_user_event'),
    )
    op.create_index('idx_attendee_user', 'attendees', ['user_id'])
    op.create_index('idx_attendee_event', 'attendees', ['event_id'])

    op.create_table(
        'event_photos',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('image_url', sa.String(1024), nullable=False),
        sa.Column('storage_key', sa.String(512), nullable=False),
        sa.Column('caption', sa.Text, nullable=False, server_default=''),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_photo_event_uploaded', 'event_photos', ['event_id', 'uploaded_at'])

    op.create_table(
        'friend_requests',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('sender_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('receiver_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_friend_request_sender', 'friend_requests', ['sender_id'])
    op.create_index('idx_friend_request_receiver', 'friend_requests', ['receiver_id'])

    # One row per pair, lower id first
    op.create_table(
        'friendships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_low_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('user_high_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('user_low_id', 'user_high_id', name='uq_friendship_pair'),
        sa.CheckConstraint('user_low_id < user_high_id', name='ck_friendship_canonical_order'),
    )
    op.create_index('idx_friendship_high', 'friendships', ['user_high_id'])

    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('link', sa.String(512), nullable=True),
        sa.Column('source_type', postgresql.ENUM(*NOTIFICATION_TYPES, name='notificationtype', create_type=False),
                  nullable=False),
        sa.Column('is_read', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('attendee_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('attendees.id', ondelete='SET NULL'), nullable=True),
        sa.Column('friend_request_id', postgresql.UUID(as_uuid=True),
                  sa.ForeignKey('friend_requests.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_notification_user_created', 'notifications', ['user_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('friendships')
    op.drop_table('friend_requests')
    op.drop_table('event_photos')
    op.drop_table('attendees')
    op.drop_table('events')
    op.drop_table('users')

    sa.Enum(name='notificationtype').drop(op.get_bind())
    sa.Enum(name='rsvpstatus').drop(op.get_bind())
    sa.Enum(name='privacylevel').drop(op.get_bind())
