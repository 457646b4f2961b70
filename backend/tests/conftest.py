import asyncio
import os
import tempfile
from pathlib import Path

# Settings are read at import time, so the test environment must be in place first.
_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="cardsavvy-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DB_DIR / 'test.db'}"
os.environ["PERPLEXITY_API_KEY"] = "test-perplexity-key"
os.environ["CREATE_TABLES_ON_STARTUP"] = "true"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["CHAT_RATE_LIMIT_PER_IP"] = "false"

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from cardsavvy.api.middleware import get_chat_service
from cardsavvy.config import get_settings
from cardsavvy.main import app
from cardsavvy.services.auth import create_user
from cardsavvy.services.chat import ChatService
from cardsavvy.services.perplexity import PerplexityClient
from cardsavvy.services.rate_limiter import FixedWindowRateLimiter

ADMIN_USERNAME = "admin"
ADMIN_EMAIL = "admin@cardsavvy.in"
ADMIN_PASSWORD = "admin-password"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="session")
def test_settings():
    """Get test settings (uses the environment set above)."""
    return get_settings()


@pytest.fixture(scope="session")
def test_client():
    """FastAPI test client."""
    with TestClient(app) as client:
        yield client


def perplexity_payload(content: str, citations: list[str] | None = None) -> dict:
    """Body of a successful chat-completions response."""
    body = {
        "id": "test",
        "model": "sonar",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }
    if citations is not None:
        body["citations"] = citations
    return body


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ProviderStub:
    """httpx.MockTransport handler replaying queued responses.

    Each queued item is either an ``httpx.Response`` or an exception instance
    to raise. The last item repeats once the queue runs out.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def sleep_recorder():
    return RecordingSleep()


@pytest.fixture
def make_client(sleep_recorder):
    """Factory for a PerplexityClient backed by a ProviderStub."""

    def _make(stub: ProviderStub, limiter: FixedWindowRateLimiter | None = None):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
        return PerplexityClient(
            http_client=http_client,
            api_key="test-perplexity-key",
            rate_limiter=limiter if limiter is not None else FixedWindowRateLimiter(limit=100),
            sleep=sleep_recorder,
        )

    return _make


@pytest.fixture
def chat_override(make_client):
    """Route /api/chat through a stubbed provider. Returns a setter."""

    def _install(stub: ProviderStub, limiter: FixedWindowRateLimiter | None = None):
        service = ChatService(make_client(stub, limiter))
        app.dependency_overrides[get_chat_service] = lambda: service
        return service

    yield _install
    app.dependency_overrides.pop(get_chat_service, None)


async def _create_admin(database_url: str) -> None:
    engine = create_async_engine(database_url)
    async with AsyncSession(engine) as session:
        await create_user(
            session, ADMIN_USERNAME, ADMIN_EMAIL, ADMIN_PASSWORD, is_admin=True
        )
        await session.commit()
    await engine.dispose()


@pytest.fixture(scope="session")
def admin_user(test_client, test_settings):
    """Admin account created once per test session."""
    asyncio.run(_create_admin(test_settings.database_url))
    return {"usernameOrEmail": ADMIN_USERNAME, "password": ADMIN_PASSWORD}


@pytest.fixture
def admin_client(test_client, admin_user):
    """Test client logged in as admin for the duration of one test."""
    response = test_client.post("/api/auth/login", json=admin_user)
    assert response.status_code == 200, response.text
    yield test_client
    test_client.post("/api/auth/logout")
