"""Error taxonomy for the chat pipeline.

Every exception carries a user-safe ``message`` and the HTTP status the API
layer answers with. Provider error text is logged, never put in ``message``.
"""
from datetime import datetime, timezone


class ChatError(Exception):
    """Base class for chat pipeline failures."""

    status_code: int = 500
    default_message = "Something went wrong. Please try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidStructure(ChatError):
    """Conversation shape violates the alternation/ending rules."""

    status_code = 400
    default_message = "Invalid conversation structure."


class RateLimited(ChatError):
    """Request window is full; the caller must wait until ``retry_at``."""

    status_code = 429

    def __init__(self, retry_at: float, now: float | None = None):
        self.retry_at = retry_at
        self.now = now
        reset = datetime.fromtimestamp(retry_at, tz=timezone.utc)
        super().__init__(
            f"Rate limit exceeded. Please try again after {reset.strftime('%H:%M:%S')} UTC."
        )

    @property
    def retry_after(self) -> int:
        """Whole seconds until the window resets, at least 1."""
        if self.now is None:
            return 1
        return max(int(self.retry_at - self.now + 0.999), 1)


class ServiceBusy(ChatError):
    """Provider answered 429 on every attempt."""

    status_code = 503
    default_message = "The assistant is busy right now. Please try again in a moment."


class AuthError(ChatError):
    """Provider rejected our credentials (HTTP 401)."""

    status_code = 502
    default_message = "The assistant is temporarily unavailable due to a configuration issue."


class ServiceError(ChatError):
    """Provider failed with a 5xx status."""

    status_code = 503
    default_message = "The assistant service is experiencing problems. Please try again later."


class UnknownError(ChatError):
    """Any other provider or network failure."""

    status_code = 502
    default_message = "Sorry, I couldn't get an answer right now. Please try again."


class ProviderHTTPError(Exception):
    """Raw non-success response from the provider, used inside the retry loop."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Provider returned HTTP {status_code}")


def classify_failure(exc: Exception) -> ChatError:
    """Translate a provider failure into a user-facing ChatError."""
    if isinstance(exc, ChatError):
        return exc
    status = getattr(exc, "status_code", None)
    if status == 429:
        return ServiceBusy()
    if status == 401:
        return AuthError()
    if status is not None and 500 <= status < 600:
        return ServiceError()
    return UnknownError()
