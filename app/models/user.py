"""
User model.

Registration and profile management live in a separate auth service; this
table only carries what chats and message payloads need.
"""
from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, UUIDMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.chat import ChatParticipant
    from app.models.message import Message


class User(Base, UUIDMixin, TimestampMixin):
    """Registered user."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        doc="Login email"
    )

    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        doc="Public handle shown in chats"
    )

    phone: Mapped[str | None] = mapped_column(
        String(50),
        unique=True,
        nullable=True,
        doc="Optional phone number"
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="bcrypt password hash"
    )

    profile_pic: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        doc="Avatar URL"
    )

    # Relationships
    chat_memberships: Mapped[List["ChatParticipant"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan"
    )

    sent_messages: Mapped[List["Message"]] = relationship(
        back_populates="sender",
        foreign_keys="Message.sender_id"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
