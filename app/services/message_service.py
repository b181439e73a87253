"""
Message service containing business logic for message operations.
Handles send, reply, edit, soft-delete and paginated reads.
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ForbiddenError, NotFoundError, ValidationError
from app.core.websocket import connection_manager
from app.models.message import Message, TOMBSTONE_TEXT
from app.repositories.chat_repo import ChatRepository
from app.repositories.message_repo import MessageRepository
from app.repositories.read_status_repo import ReadStatusRepository
from app.schemas.message import (
    MessageDeleteResponse,
    MessageListResponse,
    MessageResponse
)
from app.services.membership_service import ChatMembershipResolver
from app.utils.datetime_utils import not_before, utc_now

logger = logging.getLogger(__name__)


def clean_text(text: Optional[str]) -> str:
    """Trim message text, rejecting missing or whitespace-only input."""
    if text is None or not text.strip():
        raise ValidationError("Message text is required")
    return text.strip()


class MessageService:
    """Service for message operations."""

    def __init__(self, db: AsyncSession):
        """
        Initialize message service.

        Args:
            db: Database session
        """
        self.db = db
        self.message_repo = MessageRepository(db)
        self.chat_repo = ChatRepository(db)
        self.read_status_repo = ReadStatusRepository(db)
        self.membership = ChatMembershipResolver(db)
        self.ws_manager = connection_manager

    async def _get_own_message(self, message_id: str, user_id: str, action: str) -> Message:
        message = await self.message_repo.get(message_id)
        if not message:
            raise NotFoundError("Message not found")

        if message.sender_id != user_id:
            raise ForbiddenError(f"You can only {action} your own messages")

        return message

    async def send_message(
        self,
        chat_id: Optional[str],
        sender_id: str,
        text: Optional[str],
        reply_to_message_id: Optional[str] = None
    ) -> MessageResponse:
        """
        Send a message to a chat.

        Every check runs before the first write. On success the message is
        stamped with the next position in the chat, the sender's watermark
        moves to it, the chat's activity time is bumped, and ``message:new``
        goes out once the transaction has committed.

        Args:
            chat_id: Chat ID
            sender_id: Sending user ID
            text: Message text (trimmed)
            reply_to_message_id: Optional message being replied to

        Returns:
            The persisted message with sender and reply target summaries

        Raises:
            ValidationError: Empty text, missing chat id, or invalid reply target
            NotFoundError: Chat or reply target does not exist
            ForbiddenError: Sender is not a participant
        """
        content = clean_text(text)
        if not chat_id:
            raise ValidationError("chatId is required")

        await self.membership.require_participant(chat_id, sender_id)

        if reply_to_message_id:
            target = await self.message_repo.get(reply_to_message_id)
            if not target:
                raise NotFoundError("Reply target message not found")
            if target.chat_id != chat_id and not settings.allow_cross_chat_replies:
                raise ValidationError("Reply target belongs to a different chat")

        chat = await self.chat_repo.get_for_update(chat_id)
        newest = await self.message_repo.get_latest(chat_id)

        created_at = not_before(newest.created_at if newest else None)
        sequence_number = newest.sequence_number + 1 if newest else 1

        message = await self.message_repo.create(
            chat_id=chat_id,
            sender_id=sender_id,
            content=content,
            reply_to_message_id=reply_to_message_id,
            sequence_number=sequence_number,
            created_at=created_at
        )

        # The sender has obviously seen their own message
        await self.read_status_repo.advance(chat_id, sender_id, message, seen_at=created_at)

        chat.updated_at = created_at
        await self.db.commit()

        message = await self.message_repo.get_with_relations(message.id)
        response = MessageResponse.from_message(message)

        logger.info(
            f"Message {message.id} sent to chat {chat_id} by {sender_id} "
            f"(seq={sequence_number}, reply_to={reply_to_message_id})"
        )

        await self.ws_manager.broadcast_new_message(chat_id, response.to_payload())
        return response

    async def reply_to_message(
        self,
        chat_id: Optional[str],
        sender_id: str,
        text: Optional[str],
        reply_to_message_id: Optional[str]
    ) -> MessageResponse:
        """Send a message that replies to ``reply_to_message_id``."""
        clean_text(text)
        if not reply_to_message_id:
            raise ValidationError("replyToMessageId is required")

        return await self.send_message(chat_id, sender_id, text, reply_to_message_id)

    async def edit_message(
        self,
        message_id: str,
        editor_id: str,
        text: Optional[str]
    ) -> MessageResponse:
        """
        Edit a message's content. Only the original sender may edit.

        Raises:
            NotFoundError: Message does not exist
            ForbiddenError: Editor is not the sender
            ValidationError: Empty text, or the message was deleted
        """
        message = await self._get_own_message(message_id, editor_id, "edit")
        content = clean_text(text)

        if message.is_deleted:
            raise ValidationError("Cannot edit a deleted message")

        message.content = content
        message.edited_at = utc_now()
        await self.db.commit()

        message = await self.message_repo.get_with_relations(message_id)
        response = MessageResponse.from_message(message)

        logger.info(f"Message {message_id} edited by {editor_id}")

        await self.ws_manager.broadcast_message_edited(message.chat_id, response.to_payload())
        return response

    async def delete_message(self, message_id: str, requester_id: str) -> MessageDeleteResponse:
        """
        Soft-delete a message. Only the original sender may delete.

        The content is replaced by the tombstone text and the broadcast only
        carries the message id.
        """
        message = await self._get_own_message(message_id, requester_id, "delete")

        if message.is_deleted:
            raise ValidationError("Message already deleted")

        deleted_at = utc_now()
        message.is_deleted = True
        message.deleted_at = deleted_at
        message.content = TOMBSTONE_TEXT
        chat_id = message.chat_id
        await self.db.commit()

        logger.info(f"Message {message_id} deleted by {requester_id}")

        await self.ws_manager.broadcast_message_deleted(chat_id, message_id)
        return MessageDeleteResponse(id=message_id, deleted_at=deleted_at)

    async def get_messages(
        self,
        chat_id: Optional[str],
        user_id: str,
        limit: Optional[int] = None,
        cursor: Optional[str] = None
    ) -> MessageListResponse:
        """
        Get a page of messages, newest first.

        Args:
            chat_id: Chat ID
            user_id: Requesting user ID (must participate)
            limit: Page size (defaults to settings.default_page_size, capped at max_page_size)
            cursor: Message id; the page holds messages strictly older than it

        Returns:
            Page with ``next_cursor`` set to the oldest returned id when more remain
        """
        if not chat_id:
            raise ValidationError("chatId is required")

        if limit is None:
            limit = settings.default_page_size
        if limit < 1:
            raise ValidationError("limit must be a positive integer")
        limit = min(limit, settings.max_page_size)

        await self.membership.require_participant(chat_id, user_id)

        messages, next_cursor, has_more = await self.message_repo.get_chat_messages(
            chat_id=chat_id,
            limit=limit,
            cursor=cursor
        )

        return MessageListResponse(
            messages=[MessageResponse.from_message(m) for m in messages],
            next_cursor=next_cursor,
            has_next=has_more
        )
