"""
Chat API routes.
Provides endpoints for listing and creating chats and marking them seen.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.dependencies import get_current_user
from app.schemas.chat import ChatCreate, ChatEnvelope, ChatListResponse, ChatSeenResponse
from app.services.chat_service import ChatService
from app.services.read_tracking_service import ReadTrackingService

router = APIRouter(prefix="/chats", tags=["Chats"])


@router.get(
    "",
    response_model=ChatListResponse,
    summary="List chats",
    description="Chats of the caller with participants, last message and unread count, most recent first."
)
async def list_chats(
    limit: Optional[int] = Query(None, description="Maximum number of chats"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ChatService(db)
    return await service.list_chats(current_user["id"], limit=limit)


@router.post(
    "",
    response_model=ChatEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create a chat"
)
async def create_chat(
    chat_data: ChatCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a chat.

    - **participants**: user ids; the caller is added if absent
    - **name**: optional display name
    - **groupPic**: optional picture URL

    The chat is a group when it has more than two participants.
    """
    service = ChatService(db)
    return await service.create_chat(
        creator_id=current_user["id"],
        participants=chat_data.participants,
        name=chat_data.name,
        group_pic=chat_data.group_pic
    )


@router.post(
    "/{chat_id}/seen",
    response_model=ChatSeenResponse,
    summary="Mark chat as seen",
    description="Advance the caller's read watermark to the newest message of the chat."
)
async def mark_chat_seen(
    chat_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = ReadTrackingService(db)
    return await service.mark_seen(chat_id, current_user["id"])
