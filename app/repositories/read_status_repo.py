"""
Read watermark repository.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.message import Message
from app.models.read_status import ChatReadStatus
from app.repositories.base import BaseRepository
from app.utils.datetime_utils import utc_now


class ReadStatusRepository(BaseRepository[ChatReadStatus]):
    """Repository for per (chat, user) read watermarks."""

    def __init__(self, db: AsyncSession):
        """Initialize read status repository."""
        super().__init__(ChatReadStatus, db)

    async def get_for(self, chat_id: str, user_id: str) -> Optional[ChatReadStatus]:
        """
        Get the watermark of a user in a chat.

        Always re-reads the row so a watermark that was just advanced by a
        conditional upsert is not served from the identity map.
        """
        result = await self.db.execute(
            select(ChatReadStatus)
            .where(
                ChatReadStatus.chat_id == chat_id,
                ChatReadStatus.user_id == user_id
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def advance(
        self,
        chat_id: str,
        user_id: str,
        message: Message,
        seen_at: Optional[datetime] = None
    ) -> ChatReadStatus:
        """
        Move the watermark forward to ``message``.

        The row is inserted on first use. An existing row is only updated when
        ``message`` sits strictly after the current watermark position, so a
        stale or concurrent write can never move the watermark backwards.

        Args:
            chat_id: Chat ID
            user_id: User ID
            message: Message to mark as last seen
            seen_at: When the watermark moved (defaults to now)

        Returns:
            The effective watermark after the upsert
        """
        stmt = self.upsert_statement().values(
            chat_id=chat_id,
            user_id=user_id,
            last_seen_message_id=message.id,
            last_seen_at=message.created_at,
            last_seen_sequence=message.sequence_number,
            updated_at=seen_at or utc_now()
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=["chat_id", "user_id"],
            set_={
                "last_seen_message_id": excluded.last_seen_message_id,
                "last_seen_at": excluded.last_seen_at,
                "last_seen_sequence": excluded.last_seen_sequence,
                "updated_at": excluded.updated_at,
            },
            where=or_(
                ChatReadStatus.last_seen_at.is_(None),
                ChatReadStatus.last_seen_at < excluded.last_seen_at,
                and_(
                    ChatReadStatus.last_seen_at == excluded.last_seen_at,
                    ChatReadStatus.last_seen_sequence < excluded.last_seen_sequence
                )
            )
        )
        await self.db.execute(stmt)
        await self.db.flush()
        return await self.get_for(chat_id, user_id)
