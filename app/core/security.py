"""
Security utilities for authentication.
Handles JWT token issuing/validation and password hashing.
"""
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from passlib.context import CryptContext

from app.config import settings
from app.core.exceptions import UnauthenticatedError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token.

    Args:
        data: Payload data to encode
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token

    Example:
        ```python
        token = create_access_token(
            data={"sub": user_id},
            expires_delta=timedelta(hours=24)
        )
        ```
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(hours=settings.jwt_expiration_hours)

    to_encode.update({"exp": expire, "iat": now})

    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate JWT token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        UnauthenticatedError: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise UnauthenticatedError("Unauthorized", "Token has expired")
    except jwt.InvalidTokenError:
        raise UnauthenticatedError("Unauthorized", "Invalid token")


def get_subject(payload: Dict[str, Any]) -> str:
    """
    Extract the user id from a decoded token.

    Accepts the standard ``sub`` claim as well as ``userId``, which older
    clients put in their tokens.
    """
    user_id = payload.get("sub") or payload.get("userId")
    if not user_id or not isinstance(user_id, str):
        raise UnauthenticatedError("Unauthorized", "Token has no subject")
    return user_id


def extract_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        authorization: Authorization header value ("Bearer <token>")

    Returns:
        JWT token string

    Raises:
        UnauthenticatedError: If header format is invalid
    """
    if not authorization:
        raise UnauthenticatedError("Unauthorized", "Missing authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise UnauthenticatedError("Unauthorized", "Invalid authorization header format")

    return parts[1]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against its bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)
