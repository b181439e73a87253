"""
Shared slowapi limiter.

Routers decorate endpoints with ``@limiter.limit(...)``; main.py registers the
limiter on the app and the 429 handler.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
