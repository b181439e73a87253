"""
Broadcasts go out only once the mutation is committed.

Each test records the order of ``commit`` and the broadcast on the service's
session, and the broadcast itself re-reads the mutated row from a separate
session.
"""
import pytest
from sqlalchemy import select

from app.models.message import Message, MessageDelivery
from app.models.read_status import ChatReadStatus
from app.services.delivery_service import DeliveryService
from app.services.message_service import MessageService
from app.services.read_tracking_service import ReadTrackingService


@pytest.fixture
def events(db_session, monkeypatch):
    """Ordered log of commits on ``db_session``; broadcasts append to it too."""
    log = []
    original_commit = db_session.commit

    async def tracking_commit():
        await original_commit()
        log.append("commit")

    monkeypatch.setattr(db_session, "commit", tracking_commit)
    return log


async def _read_message(session_factory, message_id):
    async with session_factory() as session:
        return await session.get(Message, message_id)


@pytest.mark.asyncio
class TestBroadcastAfterCommit:

    async def test_send_broadcasts_after_commit(
        self, db_session, session_factory, user_a, test_chat, mock_websocket_manager, events
    ):
        seen = {}

        async def on_broadcast(chat_id, payload):
            events.append("broadcast")
            seen["message"] = await _read_message(session_factory, payload["id"])

        mock_websocket_manager.broadcast_new_message.side_effect = on_broadcast

        await MessageService(db_session).send_message(test_chat.id, user_a.id, "hello")

        assert events == ["commit", "broadcast"]
        assert seen["message"] is not None
        assert seen["message"].content == "hello"

    async def test_edit_broadcasts_after_commit(
        self, db_session, session_factory, user_a, test_chat, mock_websocket_manager, events
    ):
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "draft")
        events.clear()
        seen = {}

        async def on_broadcast(chat_id, payload):
            events.append("broadcast")
            seen["message"] = await _read_message(session_factory, payload["id"])

        mock_websocket_manager.broadcast_message_edited.side_effect = on_broadcast

        await service.edit_message(message.id, user_a.id, "final")

        assert events == ["commit", "broadcast"]
        assert seen["message"].content == "final"
        assert seen["message"].edited_at is not None

    async def test_delete_broadcasts_after_commit(
        self, db_session, session_factory, user_a, test_chat, mock_websocket_manager, events
    ):
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "oops")
        events.clear()
        seen = {}

        async def on_broadcast(chat_id, message_id):
            events.append("broadcast")
            seen["message"] = await _read_message(session_factory, message_id)

        mock_websocket_manager.broadcast_message_deleted.side_effect = on_broadcast

        await service.delete_message(message.id, user_a.id)

        assert events == ["commit", "broadcast"]
        assert seen["message"].is_deleted is True

    async def test_mark_seen_broadcasts_after_commit(
        self, db_session, session_factory, user_a, user_b, test_chat, mock_websocket_manager, events
    ):
        message = await MessageService(db_session).send_message(test_chat.id, user_a.id, "read me")
        events.clear()
        seen = {}

        async def on_broadcast(chat_id, user_id, last_seen_message_id):
            events.append("broadcast")
            async with session_factory() as session:
                result = await session.execute(
                    select(ChatReadStatus).where(
                        ChatReadStatus.chat_id == chat_id,
                        ChatReadStatus.user_id == user_id
                    )
                )
                seen["watermark"] = result.scalar_one_or_none()

        mock_websocket_manager.broadcast_message_seen.side_effect = on_broadcast

        await ReadTrackingService(db_session).mark_seen(test_chat.id, user_b.id)

        assert events == ["commit", "broadcast"]
        assert seen["watermark"].last_seen_message_id == message.id

    async def test_mark_delivered_broadcasts_after_commit(
        self, db_session, session_factory, user_a, user_b, test_chat, mock_websocket_manager, events
    ):
        message = await MessageService(db_session).send_message(test_chat.id, user_a.id, "ping")
        events.clear()
        seen = {}

        async def on_broadcast(chat_id, message_id, user_id):
            events.append("broadcast")
            async with session_factory() as session:
                seen["delivery"] = await session.get(MessageDelivery, (message_id, user_id))

        mock_websocket_manager.broadcast_message_delivered.side_effect = on_broadcast

        await DeliveryService(db_session).mark_delivered(message.id, user_b.id)

        assert events == ["commit", "broadcast"]
        assert seen["delivery"] is not None
