"""
Message and MessageDelivery models.

Messages are ordered inside a chat by (created_at, sequence_number); ids are
opaque and never used for ordering.
"""
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, UUIDMixin

if TYPE_CHECKING:
    from app.models.user import User
    from app.models.chat import Chat

# Content stored in place of the original text once a message is deleted
TOMBSTONE_TEXT = "Message deleted"


class Message(Base, UUIDMixin):
    """
    Chat message.

    Never physically removed: deletion sets ``is_deleted``/``deleted_at`` and
    replaces the content with TOMBSTONE_TEXT.
    """

    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("chat_id", "sequence_number", name="uq_messages_chat_sequence"),
    )

    # References
    chat_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Chat this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="User who sent the message"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Message text (tombstone text once deleted)"
    )

    # Threading
    reply_to_message_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="ID of message this is replying to"
    )

    # Sequence number for deterministic ordering
    sequence_number: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        doc="Monotonically increasing sequence number per chat (tie-break for equal timestamps)"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
        doc="When the message was created (never decreases within a chat)"
    )

    edited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the content was last edited"
    )

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Soft delete timestamp"
    )

    is_deleted: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
        doc="Whether the message has been soft-deleted"
    )

    # Relationships
    chat: Mapped["Chat"] = relationship(back_populates="messages")
    sender: Mapped["User"] = relationship(
        back_populates="sent_messages",
        foreign_keys=[sender_id]
    )

    # Self-referential relationship for replies
    reply_to: Mapped["Message | None"] = relationship(
        remote_side="Message.id",
        foreign_keys=[reply_to_message_id]
    )

    deliveries: Mapped[List["MessageDelivery"]] = relationship(
        back_populates="message",
        cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, chat_id={self.chat_id}, seq={self.sequence_number})>"


class MessageDelivery(Base):
    """
    Delivery acknowledgement of a message by one user.

    At most one row per (message, user); re-delivery refreshes ``delivered_at``.
    """

    __tablename__ = "message_deliveries"

    message_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Message ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        doc="User ID"
    )

    delivered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Last time the message was delivered to the user"
    )

    message: Mapped["Message"] = relationship(back_populates="deliveries")

    def __repr__(self) -> str:
        return f"<MessageDelivery(message_id={self.message_id}, user_id={self.user_id})>"


# Indexes for performance
Index("idx_messages_chat_position", Message.chat_id, Message.created_at, Message.sequence_number)
Index("idx_message_deliveries_user", MessageDelivery.user_id)
