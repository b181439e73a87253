"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for authentication, database sessions, etc.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import UnauthenticatedError
from app.core.security import decode_token, extract_token_from_header, get_subject
from app.repositories.user_repo import UserRepository


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Dependency to get the current authenticated user.

    Flow:
    1. Extract the bearer token from the Authorization header
    2. Decode and verify it locally (HS256, shared secret)
    3. Load the user named by the ``sub`` (or ``userId``) claim

    Args:
        authorization: Authorization header containing Bearer token
        db: Database session

    Returns:
        Dictionary containing user information

    Raises:
        UnauthenticatedError: 401 if the token is missing, invalid, or the user no longer exists

    Example:
        ```python
        @router.get("/protected")
        async def protected_route(current_user: dict = Depends(get_current_user)):
            return {"user": current_user["username"]}
        ```
    """
    token = extract_token_from_header(authorization)
    user_id = get_subject(decode_token(token))

    user = await UserRepository(db).get(user_id)
    if not user:
        raise UnauthenticatedError("Unauthorized", "User not found")

    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "profile_pic": user.profile_pic,
    }
