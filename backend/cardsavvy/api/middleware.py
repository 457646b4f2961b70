"""Shared request dependencies: chat service, rate limiting, admin sessions.

The chat rate limiter is an in-memory fixed window owned by the application
(``app.state.rate_limiter``). By default every caller shares one window; set
CHAT_RATE_LIMIT_PER_IP=true to key windows by client IP instead.
"""
import logging

from fastapi import HTTPException, Request

from cardsavvy.config import get_settings
from cardsavvy.services.chat import ChatService
from cardsavvy.services.rate_limiter import GLOBAL_KEY

logger = logging.getLogger(__name__)


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def chat_rate_key(request: Request) -> str:
    """Rate-limit key for a chat request: the client IP, or the shared key."""
    settings = get_settings()
    if not settings.chat_rate_limit_per_ip:
        return GLOBAL_KEY
    return request.client.host if request.client else "unknown"


async def require_admin(request: Request) -> int:
    """Dependency for back-office write routes. Returns the session user id."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not request.session.get("is_admin"):
        logger.warning(f"Non-admin user {user_id} attempted an admin action")
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id
