"""Perplexity chat-completions client.

One request runs: validate -> rate check -> prompt prep -> call (with
retries) -> classify failure. Only 429, 5xx and transport errors are
retried; other 4xx (401 included) fail on the first attempt.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

import httpx

from cardsavvy.config import Settings
from cardsavvy.schemas.chat import ChatTurn
from cardsavvy.services.errors import ChatError, ProviderHTTPError, UnknownError, classify_failure
from cardsavvy.services.message_validator import validate_conversation
from cardsavvy.services.rate_limiter import GLOBAL_KEY, FixedWindowRateLimiter
from cardsavvy.services.search_query import enhance_search_query

logger = logging.getLogger(__name__)

PROVIDER_NAME = "perplexity"

USER_QUALIFIER = "For Indian credit cards only: "

SYSTEM_PROMPT = (
    "You are CardSavvy, an expert advisor on credit cards issued in India. "
    "Only discuss credit cards available to Indian residents from Indian banks "
    "and card issuers (HDFC, SBI Card, ICICI, Axis, Kotak, IDFC First, AU, RBL, "
    "American Express India and similar). Quote every fee and benefit in Indian "
    "Rupees (₹). When recommending cards, give the annual fee, joining fee, "
    "reward rate, key benefits and eligibility. Structure answers with short "
    "headings and bullet points, and end with a 'Best Suited For' summary when "
    "comparing cards. Prefer information from the last 12 months and say so "
    "when details may have changed. Never give advice about cards outside India."
)

TRUSTED_DOMAINS = (
    "bankbazaar.com",
    "paisabazaar.com",
    "cardinsider.com",
    "cardexpert.in",
    "hdfcbank.com",
    "sbicard.com",
    "icicibank.com",
    "axisbank.com",
    "rbi.org.in",
)

SAMPLING = {
    "temperature": 0.2,
    "top_p": 0.9,
    "max_tokens": 1500,
    "presence_penalty": 0,
    "frequency_penalty": 1,
}

LOCALE = {
    "search_recency_filter": "month",
    "search_locale": "en-IN",
    "web_search_options": {
        "search_context_size": "medium",
        "user_location": {"country": "IN"},
    },
}


@dataclass
class ChatResponse:
    """Assistant reply plus the sources the provider cited."""

    content: str
    citations: list[str] = field(default_factory=list)
    provider: str = PROVIDER_NAME


def is_retryable_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class PerplexityClient:
    """Sends conversations to Perplexity and classifies its failures."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        rate_limiter: FixedWindowRateLimiter,
        api_url: str = "https://api.perplexity.ai/chat/completions",
        model: str = "sonar",
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")

        self.http_client = http_client
        self.api_key = api_key
        self.rate_limiter = rate_limiter
        self.api_url = api_url
        self.model = model
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient,
        rate_limiter: FixedWindowRateLimiter,
    ) -> "PerplexityClient":
        return cls(
            http_client=http_client,
            api_key=settings.perplexity_api_key,
            rate_limiter=rate_limiter,
            api_url=settings.perplexity_api_url,
            model=settings.perplexity_model,
            max_retries=settings.chat_max_retries,
            retry_base_delay=settings.chat_retry_base_delay,
        )

    async def generate(
        self, turns: Sequence[ChatTurn], rate_key: str = GLOBAL_KEY
    ) -> ChatResponse:
        """Get an answer for the conversation.

        Raises:
            InvalidStructure: conversation does not alternate or end on a user turn.
            RateLimited: the request window is full.
            ServiceBusy, AuthError, ServiceError, UnknownError: provider failure
                after retries (or immediately, for non-retryable statuses).
        """
        validate_conversation(turns)
        self.rate_limiter.check(rate_key)

        messages = self.prepare_messages(turns)
        latest_user = next(
            (t.content for t in reversed(turns) if t.role == "user"), ""
        )
        payload = self.build_payload(messages, enhance_search_query(latest_user))

        return await self._call_with_retries(payload)

    def prepare_messages(self, turns: Sequence[ChatTurn]) -> list[dict]:
        """Qualify user turns and put the system prompt first."""
        system = [{"role": t.role, "content": t.content} for t in turns if t.role == "system"]
        if not system:
            system = [{"role": "system", "content": SYSTEM_PROMPT}]

        dialogue = []
        for turn in turns:
            if turn.role == "system":
                continue
            content = turn.content
            if turn.role == "user" and not content.startswith(USER_QUALIFIER):
                content = USER_QUALIFIER + content
            dialogue.append({"role": turn.role, "content": content})

        return system + dialogue

    def build_payload(self, messages: list[dict], search_query: str) -> dict:
        return {
            "model": self.model,
            "messages": messages,
            **SAMPLING,
            "search_domain_filter": list(TRUSTED_DOMAINS),
            "search_query": search_query,
            "return_citations": True,
            "return_images": False,
            **LOCALE,
        }

    async def _call_with_retries(self, payload: dict) -> ChatResponse:
        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            if attempt:
                delay = attempt * self.retry_base_delay
                logger.info(f"Retrying Perplexity call in {delay:.1f}s (retry {attempt}/{self.max_retries})")
                await self._sleep(delay)

            try:
                return await self._call(payload)
            except ChatError:
                raise
            except ProviderHTTPError as e:
                last_error = e
                logger.warning(
                    f"Perplexity attempt {attempt + 1} failed: status={e.status_code}, "
                    f"body={e.body[:200]}"
                )
                if not is_retryable_status(e.status_code):
                    break
            except httpx.TransportError as e:
                last_error = e
                logger.warning(
                    f"Perplexity attempt {attempt + 1} failed: network error {type(e).__name__}: {e}"
                )

        error = classify_failure(last_error)
        logger.error(
            f"Perplexity request failed after {attempt + 1} attempt(s): "
            f"{type(error).__name__} (cause: {last_error})"
        )
        raise error

    async def _call(self, payload: dict) -> ChatResponse:
        response = await self.http_client.post(
            self.api_url,
            json=payload,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

        if not response.is_success:
            raise ProviderHTTPError(response.status_code, response.text)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
            citations = data.get("citations") or []
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected Perplexity response shape: {e}")
            raise UnknownError()

        if not isinstance(content, str) or not isinstance(citations, list):
            logger.error(
                f"Unexpected Perplexity response types: content={type(content).__name__}, "
                f"citations={type(citations).__name__}"
            )
            raise UnknownError()

        logger.info(
            f"Perplexity answered: {len(content)} chars, {len(citations)} citation(s)"
        )
        return ChatResponse(content=content, citations=list(citations))
