from typing import Any, Literal

from pydantic import BaseModel, Field

Role = Literal["system", "user", "assistant"]


class ChatTurn(BaseModel):
    """A single message in a conversation."""

    role: Role
    content: str


class ChatHistoryTurn(BaseModel):
    """A prior message sent back by the chat widget."""

    role: str = Field(..., pattern="^(user|assistant)$")
    content: str


class ChatRequest(BaseModel):
    """Request body for sending a chat message.

    ``message`` is typed loosely so the endpoint can answer a non-string
    value with its own 400 instead of a schema error.
    """

    message: Any = None
    conversation_history: list[ChatHistoryTurn] = Field(default_factory=list)


class ChatReply(BaseModel):
    """Response body for a chat message."""

    response: str
    citations: list[str] = Field(default_factory=list)
    provider: str | None = None


class ChatSuggestionsResponse(BaseModel):
    """Starter prompts for the chat widget."""

    suggestions: list[str]
