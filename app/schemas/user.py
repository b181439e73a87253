"""
Pydantic schemas for user summaries embedded in chat and message payloads.
"""
from typing import Optional

from pydantic import Field

from app.schemas.base import CamelModel


class UserSummary(CamelModel):
    """Public view of a user."""

    id: str = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    profile_pic: Optional[str] = Field(None, description="Avatar URL")
