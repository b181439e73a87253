"""
Chat repository for database operations.
Handles chats, participants, and related queries.
"""
from typing import Optional, List, Set

from sqlalchemy import select, func, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.chat import Chat, ChatParticipant
from app.repositories.base import BaseRepository


class ChatRepository(BaseRepository[Chat]):
    """Repository for chat database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Chat, db)

    async def get_with_relations(self, chat_id: str) -> Optional[Chat]:
        """
        Get chat with participants and their users loaded.

        Args:
            chat_id: Chat ID

        Returns:
            Chat with relations or None
        """
        result = await self.db.execute(
            select(Chat)
            .where(Chat.id == chat_id)
            .options(selectinload(Chat.participants).selectinload(ChatParticipant.user))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, chat_id: str) -> Optional[Chat]:
        """
        Get chat and lock its row until the transaction ends.

        Serializes message creation per chat so sequence numbers and
        timestamps are assigned in order. SQLite ignores the lock; its
        writers are already serialized.
        """
        result = await self.db.execute(
            select(Chat).where(Chat.id == chat_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_user_chats(self, user_id: str, limit: Optional[int] = None) -> List[Chat]:
        """
        Get chats the user participates in, most recently active first.

        Args:
            user_id: User ID
            limit: Optional maximum number of chats

        Returns:
            List of chats with participants loaded
        """
        member_subquery = (
            select(ChatParticipant.chat_id)
            .where(ChatParticipant.user_id == user_id)
        )

        query = (
            select(Chat)
            .where(Chat.id.in_(member_subquery))
            .options(selectinload(Chat.participants).selectinload(ChatParticipant.user))
            .order_by(desc(Chat.updated_at), desc(Chat.created_at))
        )

        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_with_participants(
        self,
        creator_id: str,
        participant_ids: List[str],
        name: Optional[str] = None,
        group_pic: Optional[str] = None,
        is_group: bool = False
    ) -> Chat:
        """
        Create chat with participants in a single transaction.

        Args:
            creator_id: Creator user ID (always added as participant)
            participant_ids: Participant user IDs (creator may or may not be included)
            name: Optional chat name
            group_pic: Optional group picture URL
            is_group: Group flag

        Returns:
            Created chat with participants
        """
        chat = Chat(
            name=name,
            group_pic=group_pic,
            is_group=is_group,
            created_by=creator_id
        )
        self.db.add(chat)
        await self.db.flush()

        member_ids = list(dict.fromkeys([*participant_ids, creator_id]))
        for member_id in member_ids:
            self.db.add(ChatParticipant(chat_id=chat.id, user_id=member_id))

        await self.db.flush()
        return await self.get_with_relations(chat.id)


class ChatParticipantRepository:
    """Repository for chat participant lookups."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def is_participant(self, chat_id: str, user_id: str) -> bool:
        """
        Check if user is a participant of the chat.

        Args:
            chat_id: Chat ID
            user_id: User ID

        Returns:
            True if participant, False otherwise
        """
        result = await self.db.execute(
            select(func.count())
            .select_from(ChatParticipant)
            .where(
                and_(
                    ChatParticipant.chat_id == chat_id,
                    ChatParticipant.user_id == user_id
                )
            )
        )
        return (result.scalar() or 0) > 0

    async def get_participant_ids(self, chat_id: str) -> Set[str]:
        """Get ids of all participants of the chat."""
        result = await self.db.execute(
            select(ChatParticipant.user_id).where(ChatParticipant.chat_id == chat_id)
        )
        return set(result.scalars().all())
