"""
Repository layer exports.
Provides database access layer for the application.
"""
from app.repositories.base import BaseRepository
from app.repositories.message_repo import (
    MessageRepository,
    MessageDeliveryRepository
)
from app.repositories.chat_repo import (
    ChatRepository,
    ChatParticipantRepository
)
from app.repositories.read_status_repo import ReadStatusRepository
from app.repositories.user_repo import UserRepository

__all__ = [
    "BaseRepository",
    "MessageRepository",
    "MessageDeliveryRepository",
    "ChatRepository",
    "ChatParticipantRepository",
    "ReadStatusRepository",
    "UserRepository",
]
