"""Event comments and profile image storage key

Revision ID: 8f2d4b6a9c13
Revises: 3c5e8a1d2f47
Create Date: 2026-10-17 15:40:21.118305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '8f2d4b6a9c13'
down_revision: Union[str, None] = '3c5e8a1d2f47'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column('users', sa.Column('image_key', sa.String(512), nullable=True))

    op.create_table(
        'comments',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('text', sa.Text, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('idx_comment_event_created', 'comments', ['event_id', 'created_at'])


def downgrade() -> None:
    op.drop_index('idx_comment_event_created', table_name='comments')
    op.drop_table('comments')
    op.drop_column('users', 'image_key')
