"""
Message repository for database operations.
Handles CRUD and query operations for messages and delivery records.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, and_, or_, func, desc
from sqlalchemy.orm import selectinload
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.message import Message, MessageDelivery
from app.repositories.base import BaseRepository


def after_position(created_at: datetime, sequence_number: int):
    """Filter for messages strictly after the (created_at, sequence_number) position."""
    return or_(
        Message.created_at > created_at,
        and_(
            Message.created_at == created_at,
            Message.sequence_number > sequence_number
        )
    )


def before_position(created_at: datetime, sequence_number: int):
    """Filter for messages strictly before the (created_at, sequence_number) position."""
    return or_(
        Message.created_at < created_at,
        and_(
            Message.created_at == created_at,
            Message.sequence_number < sequence_number
        )
    )


NEWEST_FIRST = (desc(Message.created_at), desc(Message.sequence_number))


class MessageRepository(BaseRepository[Message]):
    """Repository for message database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, db)

    def _with_relations(self, query):
        return query.options(
            selectinload(Message.sender),
            selectinload(Message.reply_to),
        )

    async def get_with_relations(self, message_id: str) -> Optional[Message]:
        """
        Get message with sender and reply target loaded.

        Args:
            message_id: Message ID

        Returns:
            Message with relations or None
        """
        result = await self.db.execute(
            self._with_relations(select(Message).where(Message.id == message_id))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_latest(self, chat_id: str) -> Optional[Message]:
        """Newest message of a chat, or None for an empty chat."""
        result = await self.db.execute(
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(*NEWEST_FIRST)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_latest_for_chats(self, chat_ids: List[str]) -> dict[str, Message]:
        """
        Newest message of each chat, keyed by chat id.

        Chats without messages are absent from the result.
        """
        if not chat_ids:
            return {}

        ranked = (
            select(
                Message.id.label("message_id"),
                func.row_number().over(
                    partition_by=Message.chat_id,
                    order_by=NEWEST_FIRST
                ).label("rank")
            )
            .where(Message.chat_id.in_(chat_ids))
            .subquery()
        )
        result = await self.db.execute(
            select(Message)
            .join(ranked, ranked.c.message_id == Message.id)
            .where(ranked.c.rank == 1)
        )
        return {message.chat_id: message for message in result.scalars().all()}

    async def get_chat_messages(
        self,
        chat_id: str,
        limit: int,
        cursor: Optional[str] = None
    ) -> Tuple[List[Message], Optional[str], bool]:
        """
        Get a page of chat messages, newest first.

        The cursor is a message id; the page holds messages strictly older than
        it. A cursor that does not resolve to a message of this chat is ignored
        and the page starts at the newest message.

        Args:
            chat_id: Chat ID
            limit: Page size
            cursor: Optional anchor message id

        Returns:
            Tuple of (messages, next_cursor, has_more)
        """
        query = self._with_relations(
            select(Message).where(Message.chat_id == chat_id)
        )

        if cursor:
            anchor = await self.get(cursor)
            if anchor is not None and anchor.chat_id == chat_id:
                query = query.where(
                    before_position(anchor.created_at, anchor.sequence_number)
                )

        # Fetch one extra row to learn whether an older page exists
        query = query.order_by(*NEWEST_FIRST).limit(limit + 1)

        result = await self.db.execute(query)
        messages = list(result.scalars().all())

        has_more = len(messages) > limit
        if has_more:
            messages = messages[:limit]

        next_cursor = messages[-1].id if messages and has_more else None
        return messages, next_cursor, has_more

    async def count_after(
        self,
        chat_id: str,
        created_at: datetime,
        sequence_number: int
    ) -> int:
        """Count messages of a chat positioned strictly after the given position."""
        result = await self.db.execute(
            select(func.count())
            .select_from(Message)
            .where(
                Message.chat_id == chat_id,
                after_position(created_at, sequence_number)
            )
        )
        return result.scalar() or 0


class MessageDeliveryRepository(BaseRepository[MessageDelivery]):
    """Repository for per-user delivery acknowledgements."""

    def __init__(self, db: AsyncSession):
        """Initialize message delivery repository."""
        super().__init__(MessageDelivery, db)

    async def get_for(self, message_id: str, user_id: str) -> Optional[MessageDelivery]:
        result = await self.db.execute(
            select(MessageDelivery)
            .where(
                MessageDelivery.message_id == message_id,
                MessageDelivery.user_id == user_id
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        message_id: str,
        user_id: str,
        delivered_at: datetime
    ) -> MessageDelivery:
        """
        Record a delivery, refreshing the timestamp if one already exists.

        Runs as a single INSERT ... ON CONFLICT so concurrent acknowledgements
        for the same (message, user) never produce duplicate rows.
        """
        stmt = self.upsert_statement().values(
            message_id=message_id,
            user_id=user_id,
            delivered_at=delivered_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["message_id", "user_id"],
            set_={"delivered_at": stmt.excluded.delivered_at}
        )
        await self.db.execute(stmt)
        await self.db.flush()
        return await self.get_for(message_id, user_id)
