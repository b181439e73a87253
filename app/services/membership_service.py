"""
Chat membership resolution.

Authorization gate used before every chat mutation, by the read tracker and
by the websocket hub when a connection asks to join a room.
"""
from typing import Set

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ForbiddenError, NotFoundError
from app.models.chat import Chat
from app.repositories.chat_repo import ChatRepository, ChatParticipantRepository


class ChatMembershipResolver:
    """
    Resolves who participates in a chat.

    "Chat not found" (404) and "not a participant" (403) are always reported
    as distinct errors.
    """

    def __init__(self, db: AsyncSession):
        self.chat_repo = ChatRepository(db)
        self.participant_repo = ChatParticipantRepository(db)

    async def is_participant(self, chat_id: str, user_id: str) -> bool:
        return await self.participant_repo.is_participant(chat_id, user_id)

    async def participants_of(self, chat_id: str) -> Set[str]:
        """
        Get the participant ids of a chat.

        Raises:
            NotFoundError: If the chat does not exist
        """
        if not await self.chat_repo.exists(chat_id):
            raise NotFoundError("Chat not found")
        return await self.participant_repo.get_participant_ids(chat_id)

    async def require_chat(self, chat_id: str) -> Chat:
        chat = await self.chat_repo.get(chat_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        return chat

    async def require_participant(self, chat_id: str, user_id: str) -> Chat:
        """
        Ensure the chat exists and the user participates in it.

        Returns:
            The chat

        Raises:
            NotFoundError: If the chat does not exist
            ForbiddenError: If the user is not a participant
        """
        chat = await self.require_chat(chat_id)
        if not await self.is_participant(chat_id, user_id):
            raise ForbiddenError("Not a participant of this chat")
        return chat
