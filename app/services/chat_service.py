"""
Chat service containing business logic for chat operations.
Handles chat listing and creation.
"""
import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models.chat import Chat
from app.models.message import Message
from app.repositories.chat_repo import ChatRepository
from app.repositories.message_repo import MessageRepository
from app.repositories.user_repo import UserRepository
from app.schemas.chat import ChatEnvelope, ChatListResponse, ChatResponse, LastMessage
from app.schemas.user import UserSummary
from app.services.read_tracking_service import ReadTrackingService

logger = logging.getLogger(__name__)


class ChatService:
    """Service for chat operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.chat_repo = ChatRepository(db)
        self.message_repo = MessageRepository(db)
        self.user_repo = UserRepository(db)
        self.read_tracking = ReadTrackingService(db)

    def _build_chat_response(
        self,
        chat: Chat,
        last_message: Optional[Message] = None,
        unread_count: int = 0
    ) -> ChatResponse:
        return ChatResponse(
            id=chat.id,
            name=chat.name,
            is_group=chat.is_group,
            group_pic=chat.group_pic,
            participants=[
                UserSummary.model_validate(p.user) for p in chat.participants if p.user
            ],
            last_message=LastMessage.model_validate(last_message) if last_message else None,
            unread_count=unread_count,
            updated_at=chat.updated_at,
            created_at=chat.created_at
        )

    async def list_chats(self, user_id: str, limit: Optional[int] = None) -> ChatListResponse:
        """
        List the user's chats, most recently active first.

        Each chat carries its participants, newest message and the user's
        unread count.

        Args:
            user_id: User ID
            limit: Optional maximum number of chats

        Returns:
            Chat list response
        """
        if limit is not None and limit < 1:
            raise ValidationError("limit must be a positive integer")

        chats = await self.chat_repo.get_user_chats(user_id, limit=limit)
        latest = await self.message_repo.get_latest_for_chats([c.id for c in chats])

        items = []
        for chat in chats:
            unread = await self.read_tracking.unread_count(chat.id, user_id)
            items.append(self._build_chat_response(chat, latest.get(chat.id), unread))

        return ChatListResponse(chats=items)

    async def create_chat(
        self,
        creator_id: str,
        participants: Optional[List[str]],
        name: Optional[str] = None,
        group_pic: Optional[str] = None
    ) -> ChatEnvelope:
        """
        Create a chat. The creator is always a participant.

        A chat becomes a group when it ends up with more than two participants.

        Raises:
            ValidationError: No participants given
            NotFoundError: A participant id does not match a user
        """
        if not participants:
            raise ValidationError("Participants are required")

        member_ids = list(dict.fromkeys([*participants, creator_id]))

        users = await self.user_repo.get_many(member_ids)
        if len(users) != len(member_ids):
            missing = set(member_ids) - {u.id for u in users}
            raise NotFoundError("User not found", ", ".join(sorted(missing)))

        chat = await self.chat_repo.create_with_participants(
            creator_id=creator_id,
            participant_ids=member_ids,
            name=name,
            group_pic=group_pic,
            is_group=len(member_ids) > 2
        )
        await self.db.commit()

        logger.info(f"Chat {chat.id} created by {creator_id} with {len(member_ids)} participants")

        return ChatEnvelope(chat=self._build_chat_response(chat))
