"""
Unit tests for ChatMembershipResolver.
"""
import pytest
from fastapi import HTTPException

from app.services.membership_service import ChatMembershipResolver


@pytest.mark.asyncio
class TestChatMembershipResolver:

    async def test_is_participant(self, db_session, user_a, user_b, outsider, test_chat):
        resolver = ChatMembershipResolver(db_session)

        assert await resolver.is_participant(test_chat.id, user_a.id) is True
        assert await resolver.is_participant(test_chat.id, user_b.id) is True
        assert await resolver.is_participant(test_chat.id, outsider.id) is False

    async def test_is_participant_unknown_chat(self, db_session, user_a):
        resolver = ChatMembershipResolver(db_session)

        assert await resolver.is_participant("no-such-chat", user_a.id) is False

    async def test_participants_of(self, db_session, user_a, user_b, test_chat):
        resolver = ChatMembershipResolver(db_session)

        assert await resolver.participants_of(test_chat.id) == {user_a.id, user_b.id}

    async def test_participants_of_unknown_chat(self, db_session):
        resolver = ChatMembershipResolver(db_session)

        with pytest.raises(HTTPException) as exc_info:
            await resolver.participants_of("no-such-chat")

        assert exc_info.value.status_code == 404

    async def test_require_participant_distinguishes_404_and_403(self, db_session, outsider, test_chat):
        """Test a missing chat and a non-member never produce the same error."""
        resolver = ChatMembershipResolver(db_session)

        with pytest.raises(HTTPException) as missing:
            await resolver.require_participant("no-such-chat", outsider.id)
        with pytest.raises(HTTPException) as forbidden:
            await resolver.require_participant(test_chat.id, outsider.id)

        assert missing.value.status_code == 404
        assert forbidden.value.status_code == 403

    async def test_require_participant_returns_chat(self, db_session, user_b, test_chat):
        chat = await ChatMembershipResolver(db_session).require_participant(test_chat.id, user_b.id)

        assert chat.id == test_chat.id
