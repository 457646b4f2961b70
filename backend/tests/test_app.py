"""Tests for application wiring: settings, startup checks, health."""
import asyncio
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from cardsavvy.config import Settings, get_settings
from cardsavvy.main import app, lifespan
from cardsavvy.services.rate_limiter import FixedWindowRateLimiter


def test_settings_defaults():
    with patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)
    assert settings.chat_rate_limit == 10
    assert settings.chat_rate_window_seconds == 60
    assert settings.chat_max_retries == 3
    assert settings.chat_retry_base_delay == 1.0
    assert settings.perplexity_timeout == 60.0
    assert settings.session_secret == "cardsavvy-secret"
    assert not settings.perplexity_configured


def test_settings_from_env():
    env = {"PERPLEXITY_API_KEY": "pplx-abc", "CHAT_RATE_LIMIT": "5", "CORS_ORIGINS": "a.com, b.com"}
    with patch.dict(os.environ, env, clear=True):
        settings = Settings(_env_file=None)
    assert settings.perplexity_configured
    assert settings.chat_rate_limit == 5
    assert settings.cors_origin_list == ["a.com", "b.com"]


def test_settings_reject_negative_retries():
    with patch.dict(os.environ, {"CHAT_MAX_RETRIES": "-1"}, clear=True):
        with pytest.raises(ValidationError):
            Settings(_env_file=None)


def test_startup_fails_without_api_key():
    missing = get_settings().model_copy(update={"perplexity_api_key": ""})

    async def start():
        async with lifespan(app):
            pass

    with patch("cardsavvy.main.get_settings", return_value=missing):
        with pytest.raises(RuntimeError, match="PERPLEXITY_API_KEY"):
            asyncio.run(start())


def test_app_owns_rate_limiter(test_client, test_settings):
    limiter = app.state.rate_limiter
    assert isinstance(limiter, FixedWindowRateLimiter)
    assert limiter.limit == test_settings.chat_rate_limit


def test_health(test_client):
    response = test_client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["checks"] == {"database": "ok", "perplexity": "ok"}
