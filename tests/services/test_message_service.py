"""
Unit tests for MessageService.
Tests business logic and service layer operations.
"""
import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from app.config import settings
from app.models.message import Message, TOMBSTONE_TEXT
from app.repositories.chat_repo import ChatRepository
from app.services.message_service import MessageService
from app.services.read_tracking_service import ReadTrackingService
from app.utils.datetime_utils import ensure_utc


async def _message_count(db_session, chat_id: str) -> int:
    result = await db_session.execute(
        select(func.count()).select_from(Message).where(Message.chat_id == chat_id)
    )
    return result.scalar()


async def _send_many(db_session, chat, sender, count: int):
    service = MessageService(db_session)
    sent = []
    for i in range(count):
        sent.append(await service.send_message(chat.id, sender.id, f"message {i}"))
    return sent


@pytest.mark.asyncio
class TestSendMessage:
    """Test cases for sending messages."""

    async def test_send_message_success(self, db_session, user_a, test_chat, mock_websocket_manager):
        """Test sending a message successfully."""
        service = MessageService(db_session)

        message = await service.send_message(test_chat.id, user_a.id, "  Hello, World!  ")

        assert message.content == "Hello, World!"
        assert message.chat_id == test_chat.id
        assert message.sender_id == user_a.id
        assert message.sender.username == "alice"
        assert message.is_deleted is False
        assert message.reply_to_message is None

        mock_websocket_manager.broadcast_new_message.assert_awaited_once_with(
            test_chat.id, message.to_payload()
        )

    async def test_payload_uses_wire_keys(self, db_session, user_a, test_chat, mock_websocket_manager):
        """Test broadcast payload is camelCase JSON."""
        service = MessageService(db_session)
        await service.send_message(test_chat.id, user_a.id, "hi")

        _, payload = mock_websocket_manager.broadcast_new_message.await_args.args
        assert payload["chatId"] == test_chat.id
        assert payload["senderId"] == user_a.id
        assert payload["sender"] == {
            "id": user_a.id,
            "username": "alice",
            "profilePic": "https://example.com/alice.png",
        }
        assert payload["createdAt"].endswith("Z")

    async def test_send_empty_text(self, db_session, user_a, test_chat, mock_websocket_manager):
        """Test whitespace-only text is rejected before anything is written."""
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.send_message(test_chat.id, user_a.id, "   ")

        assert exc_info.value.status_code == 400
        assert await _message_count(db_session, test_chat.id) == 0
        mock_websocket_manager.broadcast_new_message.assert_not_awaited()

    async def test_send_missing_chat(self, db_session, user_a):
        """Test sending to an unknown chat."""
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.send_message("no-such-chat", user_a.id, "hello")

        assert exc_info.value.status_code == 404

    async def test_send_not_participant(self, db_session, outsider, test_chat, mock_websocket_manager):
        """Test a non-participant cannot send; nothing persisted, nothing broadcast."""
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.send_message(test_chat.id, outsider.id, "x")

        assert exc_info.value.status_code == 403
        assert await _message_count(db_session, test_chat.id) == 0
        mock_websocket_manager.broadcast_new_message.assert_not_awaited()

    async def test_send_advances_sender_watermark(self, db_session, user_a, user_b, test_chat):
        """Test the sender never sees their own message as unread."""
        service = MessageService(db_session)
        tracker = ReadTrackingService(db_session)

        await service.send_message(test_chat.id, user_a.id, "first")
        await service.send_message(test_chat.id, user_a.id, "second")

        assert await tracker.unread_count(test_chat.id, user_a.id) == 0
        assert await tracker.unread_count(test_chat.id, user_b.id) == 2

    async def test_send_bumps_chat_updated_at(self, db_session, user_a, test_chat):
        """Test chat activity time follows the newest message."""
        service = MessageService(db_session)

        message = await service.send_message(test_chat.id, user_a.id, "bump")

        chat = await ChatRepository(db_session).get_with_relations(test_chat.id)
        assert ensure_utc(chat.updated_at) == message.created_at

    async def test_positions_are_monotonic(self, db_session, user_a, test_chat):
        """Test sequence numbers increase and timestamps never go backwards."""
        await _send_many(db_session, test_chat, user_a, 5)

        result = await db_session.execute(
            select(Message).where(Message.chat_id == test_chat.id).order_by(Message.sequence_number)
        )
        messages = list(result.scalars().all())

        assert [m.sequence_number for m in messages] == [1, 2, 3, 4, 5]
        timestamps = [ensure_utc(m.created_at) for m in messages]
        assert timestamps == sorted(timestamps)


@pytest.mark.asyncio
class TestReplyToMessage:
    """Test cases for replies."""

    async def test_reply_success(self, db_session, user_a, user_b, test_chat, mock_websocket_manager):
        """Test replying links and summarizes the target."""
        service = MessageService(db_session)
        original = await service.send_message(test_chat.id, user_a.id, "question?")

        reply = await service.reply_to_message(test_chat.id, user_b.id, "answer", original.id)

        assert reply.reply_to_message_id == original.id
        assert reply.reply_to_message.id == original.id
        assert reply.reply_to_message.content == "question?"
        assert reply.reply_to_message.sender_id == user_a.id
        assert mock_websocket_manager.broadcast_new_message.await_count == 2

    async def test_reply_advances_watermark(self, db_session, user_a, user_b, test_chat):
        """Test a reply marks the chat read for the replier."""
        service = MessageService(db_session)
        original = await service.send_message(test_chat.id, user_a.id, "question?")
        await service.reply_to_message(test_chat.id, user_b.id, "answer", original.id)

        assert await ReadTrackingService(db_session).unread_count(test_chat.id, user_b.id) == 0

    async def test_reply_target_not_found(self, db_session, user_a, test_chat):
        """Test replying to an unknown message."""
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.reply_to_message(test_chat.id, user_a.id, "hello", "missing-id")

        assert exc_info.value.status_code == 404
        assert await _message_count(db_session, test_chat.id) == 0

    async def test_reply_requires_target_id(self, db_session, user_a, test_chat):
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.reply_to_message(test_chat.id, user_a.id, "hello", None)

        assert exc_info.value.status_code == 400

    async def test_reply_across_chats_rejected(self, db_session, user_a, user_b, test_chat):
        """Test replying to a message from another chat is refused by default."""
        other_chat = await ChatRepository(db_session).create_with_participants(
            creator_id=user_a.id, participant_ids=[user_b.id]
        )
        await db_session.commit()

        service = MessageService(db_session)
        foreign = await service.send_message(other_chat.id, user_a.id, "elsewhere")

        with pytest.raises(HTTPException) as exc_info:
            await service.reply_to_message(test_chat.id, user_a.id, "quote", foreign.id)

        assert exc_info.value.status_code == 400

    async def test_reply_across_chats_allowed_by_setting(
        self, db_session, user_a, user_b, test_chat, monkeypatch
    ):
        """Test cross-chat replies when explicitly enabled."""
        monkeypatch.setattr(settings, "allow_cross_chat_replies", True)
        other_chat = await ChatRepository(db_session).create_with_participants(
            creator_id=user_a.id, participant_ids=[user_b.id]
        )
        await db_session.commit()

        service = MessageService(db_session)
        foreign = await service.send_message(other_chat.id, user_a.id, "elsewhere")

        reply = await service.reply_to_message(test_chat.id, user_a.id, "quote", foreign.id)

        assert reply.chat_id == test_chat.id
        assert reply.reply_to_message.id == foreign.id


@pytest.mark.asyncio
class TestEditMessage:
    """Test cases for editing messages."""

    async def test_edit_success(self, db_session, user_a, test_chat, mock_websocket_manager):
        """Test editing sets editedAt and broadcasts the new state."""
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "Original")

        edited = await service.edit_message(message.id, user_a.id, "Updated")

        assert edited.content == "Updated"
        assert edited.edited_at is not None

        persisted = await db_session.get(Message, message.id)
        assert persisted.content == "Updated"

        mock_websocket_manager.broadcast_message_edited.assert_awaited_once_with(
            test_chat.id, edited.to_payload()
        )

    async def test_edit_not_sender(self, db_session, user_a, user_b, test_chat, mock_websocket_manager):
        """Test another participant cannot edit."""
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "Original")

        with pytest.raises(HTTPException) as exc_info:
            await service.edit_message(message.id, user_b.id, "Hijacked")

        assert exc_info.value.status_code == 403
        persisted = await db_session.get(Message, message.id)
        assert persisted.content == "Original"
        mock_websocket_manager.broadcast_message_edited.assert_not_awaited()

    async def test_edit_empty_text(self, db_session, user_a, test_chat):
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "Original")

        with pytest.raises(HTTPException) as exc_info:
            await service.edit_message(message.id, user_a.id, "")

        assert exc_info.value.status_code == 400

    async def test_edit_missing_message(self, db_session, user_a):
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.edit_message("missing-id", user_a.id, "text")

        assert exc_info.value.status_code == 404

    async def test_edit_deleted_message(self, db_session, user_a, test_chat):
        """Test deleted messages stay tombstoned."""
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "Original")
        await service.delete_message(message.id, user_a.id)

        with pytest.raises(HTTPException) as exc_info:
            await service.edit_message(message.id, user_a.id, "Back from the dead")

        assert exc_info.value.status_code == 400
        persisted = await db_session.get(Message, message.id)
        assert persisted.content == TOMBSTONE_TEXT


@pytest.mark.asyncio
class TestDeleteMessage:
    """Test cases for soft-deleting messages."""

    async def test_delete_success(self, db_session, user_a, test_chat, mock_websocket_manager):
        """Test deletion replaces content with the tombstone."""
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "secret plans")

        result = await service.delete_message(message.id, user_a.id)

        assert result.id == message.id
        assert result.message == "Message deleted"

        persisted = await db_session.get(Message, message.id)
        assert persisted.is_deleted is True
        assert persisted.deleted_at is not None
        assert persisted.content == TOMBSTONE_TEXT

    async def test_delete_broadcasts_id_only(self, db_session, user_a, test_chat, mock_websocket_manager):
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "secret plans")

        await service.delete_message(message.id, user_a.id)

        mock_websocket_manager.broadcast_message_deleted.assert_awaited_once_with(
            test_chat.id, message.id
        )

    async def test_delete_not_sender(self, db_session, user_a, user_b, test_chat):
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "mine")

        with pytest.raises(HTTPException) as exc_info:
            await service.delete_message(message.id, user_b.id)

        assert exc_info.value.status_code == 403
        persisted = await db_session.get(Message, message.id)
        assert persisted.is_deleted is False

    async def test_delete_twice(self, db_session, user_a, test_chat):
        service = MessageService(db_session)
        message = await service.send_message(test_chat.id, user_a.id, "mine")
        await service.delete_message(message.id, user_a.id)

        with pytest.raises(HTTPException) as exc_info:
            await service.delete_message(message.id, user_a.id)

        assert exc_info.value.status_code == 400

    async def test_delete_missing_message(self, db_session, user_a):
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.delete_message("missing-id", user_a.id)

        assert exc_info.value.status_code == 404


@pytest.mark.asyncio
class TestGetMessages:
    """Test cases for cursor pagination."""

    async def test_pages_cover_history_without_gaps(self, db_session, user_a, test_chat):
        """Test following nextCursor walks the whole chat newest to oldest."""
        sent = await _send_many(db_session, test_chat, user_a, 7)
        service = MessageService(db_session)

        collected = []
        cursor = None
        pages = 0
        while True:
            page = await service.get_messages(test_chat.id, user_a.id, limit=3, cursor=cursor)
            collected.extend(page.messages)
            pages += 1
            if page.next_cursor is None:
                assert page.has_next is False
                break
            assert page.has_next is True
            assert page.next_cursor == page.messages[-1].id
            cursor = page.next_cursor

        assert pages == 3
        assert [m.id for m in collected] == [m.id for m in reversed(sent)]

    async def test_default_limit(self, db_session, user_a, test_chat):
        await _send_many(db_session, test_chat, user_a, 25)
        service = MessageService(db_session)

        page = await service.get_messages(test_chat.id, user_a.id)

        assert len(page.messages) == settings.default_page_size
        assert page.has_next is True

    async def test_exact_page_has_no_next(self, db_session, user_a, test_chat):
        await _send_many(db_session, test_chat, user_a, 3)
        service = MessageService(db_session)

        page = await service.get_messages(test_chat.id, user_a.id, limit=3)

        assert len(page.messages) == 3
        assert page.next_cursor is None
        assert page.has_next is False

    async def test_unknown_cursor_starts_from_newest(self, db_session, user_a, test_chat):
        """Test an unresolvable cursor is treated as no cursor."""
        sent = await _send_many(db_session, test_chat, user_a, 3)
        service = MessageService(db_session)

        page = await service.get_messages(test_chat.id, user_a.id, limit=2, cursor="missing-id")

        assert [m.id for m in page.messages] == [sent[2].id, sent[1].id]

    async def test_deleted_messages_listed_as_tombstones(self, db_session, user_a, test_chat):
        sent = await _send_many(db_session, test_chat, user_a, 2)
        service = MessageService(db_session)
        await service.delete_message(sent[0].id, user_a.id)

        page = await service.get_messages(test_chat.id, user_a.id)

        deleted = next(m for m in page.messages if m.id == sent[0].id)
        assert deleted.is_deleted is True
        assert deleted.content == TOMBSTONE_TEXT

    async def test_not_participant(self, db_session, outsider, test_chat):
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.get_messages(test_chat.id, outsider.id)

        assert exc_info.value.status_code == 403

    async def test_invalid_limit(self, db_session, user_a, test_chat):
        service = MessageService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.get_messages(test_chat.id, user_a.id, limit=0)

        assert exc_info.value.status_code == 400
