"""
SQLAlchemy models for the chat server.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from app.models.base import Base, TimestampMixin, UUIDMixin

# Import all models (order matters for relationships)
from app.models.user import User
from app.models.chat import Chat, ChatParticipant
from app.models.message import Message, MessageDelivery, TOMBSTONE_TEXT
from app.models.read_status import ChatReadStatus

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # User
    "User",
    # Chats
    "Chat",
    "ChatParticipant",
    # Messages
    "Message",
    "MessageDelivery",
    "TOMBSTONE_TEXT",
    # Read tracking
    "ChatReadStatus",
]
