"""
Pydantic schemas for chat requests and responses.
"""
from typing import Optional, List

from pydantic import Field

from app.schemas.base import CamelModel, UTCDateTime
from app.schemas.user import UserSummary


# ============================================================================
# Request Schemas
# ============================================================================

class ChatCreate(CamelModel):
    """Schema for creating a chat."""

    name: Optional[str] = Field(None, max_length=255, description="Chat name")
    participants: Optional[List[str]] = Field(None, description="Participant user IDs")
    group_pic: Optional[str] = Field(None, max_length=500, description="Group picture URL")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Weekend plans",
                "participants": ["user-id-1", "user-id-2"],
                "groupPic": None
            }
        }
    }


# ============================================================================
# Response Schemas
# ============================================================================

class LastMessage(CamelModel):
    """Preview of the newest message in a chat."""

    id: str
    content: str
    sender_id: str
    created_at: UTCDateTime
    is_deleted: bool = False


class ChatResponse(CamelModel):
    """Schema for a chat with participants, last message and unread count."""

    id: str
    name: Optional[str] = None
    is_group: bool
    group_pic: Optional[str] = None
    participants: List[UserSummary] = Field(default_factory=list)
    last_message: Optional[LastMessage] = None
    unread_count: int = 0
    updated_at: UTCDateTime
    created_at: UTCDateTime


class ChatListResponse(CamelModel):
    chats: List[ChatResponse]


class ChatEnvelope(CamelModel):
    chat: ChatResponse


class ChatSeenResponse(CamelModel):
    """Schema for mark-seen response."""

    chat_id: str
    last_seen_message_id: Optional[str] = None
