"""Chat service for the credit-card assistant widget.

Wraps the Perplexity client: turns the widget's message and history into a
conversation, and reformats the answer for the chat bubble.
"""
import logging

from cardsavvy.schemas.chat import ChatTurn
from cardsavvy.services.markdown_enhancer import enhance_markdown
from cardsavvy.services.perplexity import ChatResponse, PerplexityClient
from cardsavvy.services.rate_limiter import GLOBAL_KEY

logger = logging.getLogger(__name__)

STARTER_SUGGESTIONS = [
    "Which is the best cashback credit card in India?",
    "Suggest a travel card with airport lounge access.",
    "HDFC Regalia Gold vs Axis Atlas: which is better?",
    "What is a good first credit card for a beginner?",
]


class ChatService:
    """Service for answering credit card questions."""

    def __init__(self, client: PerplexityClient):
        self.client = client

    def build_conversation(
        self, message: str, history: list[dict] | None = None
    ) -> list[ChatTurn]:
        """History turns in order, followed by the new user message."""
        turns = [ChatTurn(role=m["role"], content=m["content"]) for m in history or []]
        turns.append(ChatTurn(role="user", content=message))
        return turns

    async def respond(
        self,
        message: str,
        history: list[dict] | None = None,
        rate_key: str = GLOBAL_KEY,
    ) -> ChatResponse:
        turns = self.build_conversation(message, history)
        logger.info(f"Chat request: {len(turns)} turn(s), {len(message)} chars")

        raw = await self.client.generate(turns, rate_key=rate_key)
        return ChatResponse(
            content=enhance_markdown(raw.content),
            citations=raw.citations,
            provider=raw.provider,
        )

    def starter_suggestions(self) -> list[str]:
        return list(STARTER_SUGGESTIONS)
