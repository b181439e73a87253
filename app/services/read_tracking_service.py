"""
Unread counting and read watermarks.

Unread counts are derived on every read from the user's watermark and the
message log; nothing is cached between requests.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.websocket import connection_manager
from app.repositories.message_repo import MessageRepository
from app.repositories.read_status_repo import ReadStatusRepository
from app.schemas.chat import ChatSeenResponse
from app.services.membership_service import ChatMembershipResolver

logger = logging.getLogger(__name__)


class ReadTrackingService:
    """Service computing unread counts and advancing read watermarks."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.message_repo = MessageRepository(db)
        self.read_status_repo = ReadStatusRepository(db)
        self.membership = ChatMembershipResolver(db)
        self.ws_manager = connection_manager

    async def unread_count(self, chat_id: str, user_id: str) -> int:
        """
        Number of messages in the chat the user has not seen.

        - no messages: 0
        - no watermark: every message
        - watermark: messages positioned after the watermark message
        - watermark pointing at a message that no longer resolves: every
          message, so the count is never too low
        """
        total = await self.message_repo.count(chat_id=chat_id)
        if total == 0:
            return 0

        watermark = await self.read_status_repo.get_for(chat_id, user_id)
        if watermark is None or watermark.last_seen_message_id is None:
            return total

        seen = await self.message_repo.get(watermark.last_seen_message_id)
        if seen is None or seen.chat_id != chat_id:
            logger.warning(
                f"Watermark of user {user_id} in chat {chat_id} points at "
                f"unknown message {watermark.last_seen_message_id}"
            )
            return total

        return await self.message_repo.count_after(
            chat_id, seen.created_at, seen.sequence_number
        )

    async def mark_seen(self, chat_id: str, user_id: str) -> ChatSeenResponse:
        """
        Move the user's watermark to the newest message of the chat.

        Idempotent: repeating the call without new messages leaves the
        watermark where it is and reports the same result.

        Raises:
            NotFoundError: Chat does not exist, or it has no messages yet
            ForbiddenError: User is not a participant
        """
        await self.membership.require_participant(chat_id, user_id)

        newest = await self.message_repo.get_latest(chat_id)
        if newest is None:
            raise NotFoundError("No messages in this chat")

        watermark = await self.read_status_repo.advance(chat_id, user_id, newest)
        last_seen_message_id = watermark.last_seen_message_id
        await self.db.commit()

        logger.info(f"User {user_id} has seen chat {chat_id} up to {last_seen_message_id}")

        await self.ws_manager.broadcast_message_seen(chat_id, user_id, last_seen_message_id)
        return ChatSeenResponse(chat_id=chat_id, last_seen_message_id=last_seen_message_id)
