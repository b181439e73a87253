"""
Application error taxonomy.

Every error is an HTTPException carrying its status code, so services can
raise them directly and FastAPI's handlers render them as
``{"error": ..., "details": ...}``.
"""
from typing import Optional

from fastapi import HTTPException, status


class AppException(HTTPException):
    """Base class for application errors with an optional details string."""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error: str,
        details: Optional[str] = None,
        headers: Optional[dict] = None
    ):
        super().__init__(
            status_code=self.status_code_default,
            detail=error,
            headers=headers,
        )
        self.error = error
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.error}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppException):
    """Missing or invalid input (400)."""
    status_code_default = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(AppException):
    """Missing or invalid credential (401)."""
    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, error: str = "Unauthorized", details: Optional[str] = None):
        super().__init__(error, details, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppException):
    """Authenticated but not allowed to touch the resource (403)."""
    status_code_default = status.HTTP_403_FORBIDDEN


class NotFoundError(AppException):
    """Chat, message or user does not exist (404)."""
    status_code_default = status.HTTP_404_NOT_FOUND


class ConflictError(AppException):
    """Unique constraint violation (409)."""
    status_code_default = status.HTTP_409_CONFLICT


class InternalError(AppException):
    """Unexpected failure (500)."""
    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR
