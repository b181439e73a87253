"""
Pydantic schema exports.
Provides request/response models for API endpoints.
"""
from app.schemas.base import CamelModel, to_camel
from app.schemas.user import UserSummary
from app.schemas.message import (
    MessageSend,
    MessageReply,
    MessageEdit,
    ReplyTarget,
    MessageResponse,
    MessageEnvelope,
    MessageListResponse,
    MessageDeleteResponse,
    MessageDeliveredResponse
)
from app.schemas.chat import (
    ChatCreate,
    LastMessage,
    ChatResponse,
    ChatListResponse,
    ChatEnvelope,
    ChatSeenResponse
)

__all__ = [
    "CamelModel",
    "to_camel",
    "UserSummary",
    "MessageSend",
    "MessageReply",
    "MessageEdit",
    "ReplyTarget",
    "MessageResponse",
    "MessageEnvelope",
    "MessageListResponse",
    "MessageDeleteResponse",
    "MessageDeliveredResponse",
    "ChatCreate",
    "LastMessage",
    "ChatResponse",
    "ChatListResponse",
    "ChatEnvelope",
    "ChatSeenResponse",
]
