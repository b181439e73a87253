"""initial chat schema

Revision ID: a1c4e7b2d9f0
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7b2d9f0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create users, chats, chat_participants, messages, chat_read_status and
    message_deliveries.

    Messages are ordered per chat by (created_at, sequence_number); the
    unique constraint on (chat_id, sequence_number) guards the tie-break.
    """
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=255), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('profile_pic', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('phone'),
    )

    op.create_table(
        'chats',
        sa.Column('id', sa.String(length=255), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('is_group', sa.Boolean(), nullable=False),
        sa.Column('group_pic', sa.String(length=500), nullable=True),
        sa.Column('created_by', sa.String(length=255),
                  sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_chats_updated_at', 'chats', ['updated_at'])

    op.create_table(
        'chat_participants',
        sa.Column('chat_id', sa.String(length=255),
                  sa.ForeignKey('chats.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.String(length=255),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_chat_participants_user', 'chat_participants', ['user_id'])

    op.create_table(
        'messages',
        sa.Column('id', sa.String(length=255), primary_key=True),
        sa.Column('chat_id', sa.String(length=255),
                  sa.ForeignKey('chats.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.String(length=255),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('reply_to_message_id', sa.String(length=255),
                  sa.ForeignKey('messages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('sequence_number', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('edited_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_deleted', sa.Boolean(), nullable=False),
        sa.UniqueConstraint('chat_id', 'sequence_number', name='uq_messages_chat_sequence'),
    )
    op.create_index('ix_messages_chat_id', 'messages', ['chat_id'])
    op.create_index('ix_messages_sender_id', 'messages', ['sender_id'])
    op.create_index('ix_messages_reply_to_message_id', 'messages', ['reply_to_message_id'])
    op.create_index('ix_messages_created_at', 'messages', ['created_at'])
    op.create_index(
        'idx_messages_chat_position',
        'messages',
        ['chat_id', 'created_at', 'sequence_number']
    )

    op.create_table(
        'chat_read_status',
        sa.Column('chat_id', sa.String(length=255),
                  sa.ForeignKey('chats.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.String(length=255),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('last_seen_message_id', sa.String(length=255),
                  sa.ForeignKey('messages.id', ondelete='SET NULL'), nullable=True),
        sa.Column('last_seen_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_seen_sequence', sa.BigInteger(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_chat_read_status_user', 'chat_read_status', ['user_id'])

    op.create_table(
        'message_deliveries',
        sa.Column('message_id', sa.String(length=255),
                  sa.ForeignKey('messages.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('user_id', sa.String(length=255),
                  sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('idx_message_deliveries_user', 'message_deliveries', ['user_id'])


def downgrade() -> None:
    """Drop every table created by upgrade()."""
    op.drop_table('message_deliveries')
    op.drop_table('chat_read_status')
    op.drop_table('messages')
    op.drop_table('chat_participants')
    op.drop_table('chats')
    op.drop_table('users')
