"""
ChatReadStatus model: per (chat, user) read watermark.
"""
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class ChatReadStatus(Base):
    """
    Read watermark of one user in one chat.

    Besides the message id, the watermark keeps that message's position
    (created_at, sequence_number) so it can only ever move forward.
    """

    __tablename__ = "chat_read_status"

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

    last_seen_message_id: Mapped[str | None] = mapped_column(
        String(255),
        ForeignKey("messages.id", ondelete="SET NULL"),
        nullable=True,
        doc="Last message the user has seen"
    )

    last_seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="created_at of the last seen message"
    )

    last_seen_sequence: Mapped[int | None] = mapped_column(
        BigInteger,
        nullable=True,
        doc="sequence_number of the last seen message"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="When the watermark last moved"
    )

    def __repr__(self) -> str:
        return (
            f"<ChatReadStatus(chat_id={self.chat_id}, user_id={self.user_id}, "
            f"last_seen_message_id={self.last_seen_message_id})>"
        )


Index("idx_chat_read_status_user", ChatReadStatus.user_id)
