"""
Unit tests for ChatService.
"""
import pytest
from fastapi import HTTPException

from app.services.chat_service import ChatService
from app.services.message_service import MessageService
from app.services.read_tracking_service import ReadTrackingService


@pytest.mark.asyncio
class TestCreateChat:
    """Test cases for chat creation."""

    async def test_create_direct_chat(self, db_session, user_a, user_b):
        service = ChatService(db_session)

        result = await service.create_chat(user_a.id, [user_b.id])

        chat = result.chat
        assert chat.is_group is False
        assert {p.id for p in chat.participants} == {user_a.id, user_b.id}
        assert chat.last_message is None
        assert chat.unread_count == 0

    async def test_creator_added_once(self, db_session, user_a, user_b):
        """Test listing the creator explicitly does not duplicate them."""
        service = ChatService(db_session)

        result = await service.create_chat(user_a.id, [user_a.id, user_b.id, user_b.id])

        ids = [p.id for p in result.chat.participants]
        assert sorted(ids) == sorted([user_a.id, user_b.id])
        assert result.chat.is_group is False

    async def test_create_group_chat(self, db_session, user_a, user_b, outsider):
        service = ChatService(db_session)

        result = await service.create_chat(
            user_a.id, [user_b.id, outsider.id], name="Team", group_pic="https://example.com/team.png"
        )

        assert result.chat.is_group is True
        assert result.chat.name == "Team"
        assert result.chat.group_pic == "https://example.com/team.png"
        assert len(result.chat.participants) == 3

    async def test_create_without_participants(self, db_session, user_a):
        service = ChatService(db_session)

        for participants in (None, []):
            with pytest.raises(HTTPException) as exc_info:
                await service.create_chat(user_a.id, participants)
            assert exc_info.value.status_code == 400

    async def test_create_with_unknown_user(self, db_session, user_a):
        service = ChatService(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await service.create_chat(user_a.id, ["ghost-user"])

        assert exc_info.value.status_code == 404
        assert "ghost-user" in exc_info.value.details


@pytest.mark.asyncio
class TestListChats:
    """Test cases for chat listing."""

    async def test_list_includes_last_message_and_unread(self, db_session, user_a, user_b, test_chat):
        messages = MessageService(db_session)
        await messages.send_message(test_chat.id, user_a.id, "first")
        last = await messages.send_message(test_chat.id, user_a.id, "second")

        result = await ChatService(db_session).list_chats(user_b.id)

        assert len(result.chats) == 1
        chat = result.chats[0]
        assert chat.id == test_chat.id
        assert chat.last_message.id == last.id
        assert chat.last_message.content == "second"
        assert chat.unread_count == 2

    async def test_list_unread_drops_after_seen(self, db_session, user_a, user_b, test_chat):
        await MessageService(db_session).send_message(test_chat.id, user_a.id, "hello")
        await ReadTrackingService(db_session).mark_seen(test_chat.id, user_b.id)

        result = await ChatService(db_session).list_chats(user_b.id)

        assert result.chats[0].unread_count == 0

    async def test_list_orders_by_recent_activity(self, db_session, user_a, user_b, outsider, test_chat):
        service = ChatService(db_session)
        newer = (await service.create_chat(user_a.id, [outsider.id])).chat

        # Activity in the older chat moves it to the top
        await MessageService(db_session).send_message(test_chat.id, user_a.id, "bump")

        result = await service.list_chats(user_a.id)

        assert [c.id for c in result.chats] == [test_chat.id, newer.id]

    async def test_list_only_own_chats(self, db_session, outsider, test_chat):
        result = await ChatService(db_session).list_chats(outsider.id)

        assert result.chats == []

    async def test_list_limit(self, db_session, user_a, user_b, outsider, test_chat):
        service = ChatService(db_session)
        await service.create_chat(user_a.id, [outsider.id])

        result = await service.list_chats(user_a.id, limit=1)
        assert len(result.chats) == 1

        with pytest.raises(HTTPException) as exc_info:
            await service.list_chats(user_a.id, limit=0)
        assert exc_info.value.status_code == 400
