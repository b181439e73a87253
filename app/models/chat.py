"""
Chat and ChatParticipant models.

A chat is a direct conversation or a group, depending on how many
participants it was created with. The participant set is fixed at creation.
"""
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, UUIDMixin
from app.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.message import Message


class Chat(Base, UUIDMixin):
    """
    Chat model for direct and group conversations.

    ``updated_at`` is bumped on every new message and drives chat-list ordering.
    """

    __tablename__ = "chats"

    name: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Display name (usually null for direct chats)"
    )

    is_group: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
        doc="True when the chat was created with more than two participants"
    )

    group_pic: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Group picture URL"
    )

    created_by: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        doc="User who created the chat"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="When the chat was created"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
        doc="Last activity in the chat (bumped per message)"
    )

    # Relationships
    participants: Mapped[List["ChatParticipant"]] = relationship(
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    messages: Mapped[List["Message"]] = relationship(
        back_populates="chat",
        cascade="all, delete-orphan",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Chat(id={self.id}, name={self.name}, is_group={self.is_group})>"


class ChatParticipant(Base):
    """Association between chats and users."""

    __tablename__ = "chat_participants"

    chat_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("chats.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Chat ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User ID"
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="When the user was added"
    )

    # Relationships
    chat: Mapped["Chat"] = relationship(back_populates="participants")
    user: Mapped["User"] = relationship(back_populates="chat_memberships", lazy="selectin")

    def __repr__(self) -> str:
        return f"<ChatParticipant(chat_id={self.chat_id}, user_id={self.user_id})>"


Index("idx_chat_participants_user", ChatParticipant.user_id)
Index("idx_chats_updated_at", Chat.updated_at)
