"""
Pydantic schemas for message requests and responses.
Handles validation for message-related API endpoints.
"""
from typing import Optional, List

from pydantic import Field

from app.models.message import Message
from app.schemas.base import CamelModel, UTCDateTime
from app.schemas.user import UserSummary


# ============================================================================
# Request Schemas
# ============================================================================

# Text is trimmed and checked for emptiness by the message service, so an
# empty body surfaces as the same 400 whatever the route.

class MessageSend(CamelModel):
    """Schema for sending a new message."""

    text: Optional[str] = Field(None, max_length=10000, description="Message text")

    model_config = {
        "json_schema_extra": {
            "example": {"text": "Hello, how are you?"}
        }
    }


class MessageReply(CamelModel):
    """Schema for replying to a message."""

    text: Optional[str] = Field(None, max_length=10000, description="Message text")
    reply_to_message_id: Optional[str] = Field(None, description="ID of message being replied to")

    model_config = {
        "json_schema_extra": {
            "example": {
                "text": "Agreed!",
                "replyToMessageId": "123e4567-e89b-12d3-a456-426614174000"
            }
        }
    }


class MessageEdit(CamelModel):
    """Schema for editing a message."""

    text: Optional[str] = Field(None, max_length=10000, description="Updated message text")


# ============================================================================
# Response Schemas
# ============================================================================

class ReplyTarget(CamelModel):
    """Summary of the message being replied to."""

    id: str
    content: str
    sender_id: str
    created_at: UTCDateTime
    edited_at: Optional[UTCDateTime] = None
    is_deleted: bool = False


class MessageResponse(CamelModel):
    """Schema for message response."""

    id: str
    chat_id: str
    sender_id: str
    content: str
    created_at: UTCDateTime
    edited_at: Optional[UTCDateTime] = None
    deleted_at: Optional[UTCDateTime] = None
    is_deleted: bool = False
    reply_to_message_id: Optional[str] = None
    sender: Optional[UserSummary] = None
    reply_to_message: Optional[ReplyTarget] = None

    @classmethod
    def from_message(cls, message: Message) -> "MessageResponse":
        """
        Build the response from a message loaded with ``sender`` and ``reply_to``.
        """
        reply_to = message.reply_to
        return cls(
            id=message.id,
            chat_id=message.chat_id,
            sender_id=message.sender_id,
            content=message.content,
            created_at=message.created_at,
            edited_at=message.edited_at,
            deleted_at=message.deleted_at,
            is_deleted=message.is_deleted,
            reply_to_message_id=message.reply_to_message_id,
            sender=UserSummary.model_validate(message.sender) if message.sender else None,
            reply_to_message=ReplyTarget.model_validate(reply_to) if reply_to else None,
        )


class MessageEnvelope(CamelModel):
    """Single message wrapped as ``{"message": ...}``."""

    message: MessageResponse


class MessageListResponse(CamelModel):
    """Schema for paginated message list."""

    messages: List[MessageResponse]
    next_cursor: Optional[str] = Field(None, description="Pass as cursor to fetch the next older page")
    has_next: bool = False


class MessageDeleteResponse(CamelModel):
    """Schema for message deletion response."""

    message: str = "Message deleted"
    id: str
    deleted_at: UTCDateTime


class MessageDeliveredResponse(CamelModel):
    """Schema for delivery acknowledgement response."""

    message: str = "Message delivered"
    message_id: str
    user_id: str
    delivered_at: UTCDateTime
