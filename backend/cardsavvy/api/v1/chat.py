"""Chat API endpoints for the credit card assistant widget."""
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from cardsavvy.api.middleware import chat_rate_key, get_chat_service
from cardsavvy.config import get_settings
from cardsavvy.schemas.chat import ChatReply, ChatRequest, ChatSuggestionsResponse
from cardsavvy.services.chat import ChatService
from cardsavvy.services.errors import ChatError, RateLimited

logger = logging.getLogger(__name__)
router = APIRouter()


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"status": "error", "code": status_code, "message": message},
        headers=headers,
    )


@router.get("/suggestions", response_model=ChatSuggestionsResponse)
async def get_chat_suggestions(chat_service: ChatService = Depends(get_chat_service)):
    """Starter questions shown when the widget opens."""
    return ChatSuggestionsResponse(suggestions=chat_service.starter_suggestions())


@router.post("", response_model=ChatReply)
async def send_chat_message(
    request: Request,
    body: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
):
    """Answer a credit card question.

    Returns the formatted answer, its citations and the provider that
    produced it.
    """
    settings = get_settings()

    if not isinstance(body.message, str) or not body.message.strip():
        return _error(400, "Invalid input")

    if len(body.message) > settings.chat_max_message_length:
        return _error(
            400, f"Message exceeds {settings.chat_max_message_length} character limit."
        )

    history = [{"role": m.role, "content": m.content} for m in body.conversation_history]

    try:
        reply = await chat_service.respond(
            body.message, history, rate_key=chat_rate_key(request)
        )
    except RateLimited as e:
        return _error(429, e.message, headers={"Retry-After": str(e.retry_after)})
    except ChatError as e:
        logger.warning(f"Chat request failed: {type(e).__name__}")
        return _error(e.status_code, e.message)
    except Exception:
        logger.exception("Chat error")
        return _error(500, "Server error")

    return ChatReply(
        response=reply.content,
        citations=reply.citations,
        provider=reply.provider,
    )
