"""
API v1 router exports.
Provides API endpoint routers.
"""
from app.api.v1 import chats, msgs

__all__ = [
    "chats",
    "msgs",
]
