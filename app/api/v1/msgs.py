"""
Message API routes.
Provides endpoints for sending, replying to, editing, deleting and paging messages.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import get_db
from app.core.rate_limit import limiter
from app.dependencies import get_current_user
from app.schemas.message import (
    MessageDeleteResponse,
    MessageDeliveredResponse,
    MessageEdit,
    MessageEnvelope,
    MessageListResponse,
    MessageReply,
    MessageSend
)
from app.services.delivery_service import DeliveryService
from app.services.message_service import MessageService

router = APIRouter(prefix="/msgs", tags=["Messages"])


@router.get(
    "",
    response_model=MessageListResponse,
    summary="Get chat messages",
    description="Cursor-paginated messages of a chat, newest first."
)
async def get_messages(
    chat_id: Optional[str] = Query(None, alias="chatId", description="Chat ID"),
    limit: Optional[int] = Query(None, description="Page size"),
    cursor: Optional[str] = Query(None, description="Message id to page backwards from"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get messages of a chat.

    - **chatId**: chat to read
    - **limit**: page size (default 20)
    - **cursor**: `nextCursor` of the previous page
    """
    service = MessageService(db)
    return await service.get_messages(chat_id, current_user["id"], limit=limit, cursor=cursor)


@router.post(
    "",
    response_model=MessageEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Send a new message"
)
@limiter.limit(settings.rate_limit_messages)
async def send_message(
    request: Request,
    message_data: MessageSend,
    chat_id: Optional[str] = Query(None, alias="chatId", description="Chat ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Send a message to a chat the caller participates in."""
    service = MessageService(db)
    message = await service.send_message(chat_id, current_user["id"], message_data.text)
    return MessageEnvelope(message=message)


@router.post(
    "/reply",
    response_model=MessageEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to a message"
)
@limiter.limit(settings.rate_limit_messages)
async def reply_to_message(
    request: Request,
    reply_data: MessageReply,
    chat_id: Optional[str] = Query(None, alias="chatId", description="Chat ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.reply_to_message(
        chat_id,
        current_user["id"],
        reply_data.text,
        reply_data.reply_to_message_id
    )
    return MessageEnvelope(message=message)


@router.patch(
    "/{message_id}",
    response_model=MessageEnvelope,
    summary="Edit a message",
    description="Edit your own message. Deleted messages cannot be edited."
)
async def edit_message(
    message_id: str,
    edit_data: MessageEdit,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    message = await service.edit_message(message_id, current_user["id"], edit_data.text)
    return MessageEnvelope(message=message)


@router.delete(
    "/{message_id}",
    response_model=MessageDeleteResponse,
    summary="Delete a message",
    description="Soft-delete your own message; its content is replaced by a tombstone."
)
async def delete_message(
    message_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = MessageService(db)
    return await service.delete_message(message_id, current_user["id"])


@router.post(
    "/{message_id}/delivered",
    response_model=MessageDeliveredResponse,
    summary="Mark a message as delivered"
)
async def mark_delivered(
    message_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = DeliveryService(db)
    return await service.mark_delivered(message_id, current_user["id"])
