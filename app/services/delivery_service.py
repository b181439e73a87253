"""
Delivery acknowledgements, independent of read state.
"""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.websocket import connection_manager
from app.repositories.message_repo import MessageDeliveryRepository, MessageRepository
from app.schemas.message import MessageDeliveredResponse
from app.services.membership_service import ChatMembershipResolver
from app.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class DeliveryService:
    """Service recording per-user message deliveries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.message_repo = MessageRepository(db)
        self.delivery_repo = MessageDeliveryRepository(db)
        self.membership = ChatMembershipResolver(db)
        self.ws_manager = connection_manager

    async def mark_delivered(self, message_id: str, user_id: str) -> MessageDeliveredResponse:
        """
        Record that ``message_id`` reached ``user_id``.

        Re-marking only refreshes the timestamp. ``message:delivered`` is
        broadcast to the message's chat after commit.

        Raises:
            NotFoundError: Message does not exist
            ForbiddenError: User is not a participant of the message's chat
        """
        message = await self.message_repo.get(message_id)
        if not message:
            raise NotFoundError("Message not found")

        chat_id = message.chat_id
        await self.membership.require_participant(chat_id, user_id)

        delivery = await self.delivery_repo.upsert(message_id, user_id, utc_now())
        delivered_at = delivery.delivered_at
        await self.db.commit()

        logger.info(f"Message {message_id} delivered to {user_id}")

        await self.ws_manager.broadcast_message_delivered(chat_id, message_id, user_id)
        return MessageDeliveredResponse(
            message_id=message_id,
            user_id=user_id,
            delivered_at=delivered_at
        )
