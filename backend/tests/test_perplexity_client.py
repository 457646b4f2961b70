"""Tests for the Perplexity client: prompt prep, payload, retries and error mapping."""
import json

import httpx
import pytest

from conftest import ProviderStub, perplexity_payload

from cardsavvy.schemas.chat import ChatTurn
from cardsavvy.services.errors import (
    AuthError,
    InvalidStructure,
    RateLimited,
    ServiceBusy,
    ServiceError,
    UnknownError,
)
from cardsavvy.services.perplexity import (
    SYSTEM_PROMPT,
    TRUSTED_DOMAINS,
    USER_QUALIFIER,
    PerplexityClient,
    is_retryable_status,
)
from cardsavvy.services.rate_limiter import FixedWindowRateLimiter


def ask(text: str) -> list[ChatTurn]:
    return [ChatTurn(role="user", content=text)]


@pytest.mark.anyio
async def test_success_returns_content_and_citations(make_client):
    stub = ProviderStub(
        httpx.Response(200, json=perplexity_payload("Try SBI Cashback.", ["https://sbicard.com"]))
    )
    client = make_client(stub)

    result = await client.generate(ask("best cashback card"))

    assert result.content == "Try SBI Cashback."
    assert result.citations == ["https://sbicard.com"]
    assert result.provider == "perplexity"
    assert len(stub.requests) == 1


@pytest.mark.anyio
async def test_missing_citations_become_empty_list(make_client):
    client = make_client(ProviderStub(httpx.Response(200, json=perplexity_payload("Hi"))))
    result = await client.generate(ask("hello"))
    assert result.citations == []


@pytest.mark.anyio
async def test_request_payload(make_client):
    stub = ProviderStub(httpx.Response(200, json=perplexity_payload("ok")))
    client = make_client(stub)

    await client.generate(ask("hdfc vs axis"))

    request = stub.requests[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.perplexity.ai/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-perplexity-key"

    body = json.loads(request.content)
    assert body["model"] == "sonar"
    assert body["temperature"] == 0.2
    assert body["top_p"] == 0.9
    assert body["search_domain_filter"] == list(TRUSTED_DOMAINS)
    assert "compare hdfc vs axis" in body["search_query"]
    assert body["web_search_options"]["user_location"]["country"] == "IN"
    assert body["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": USER_QUALIFIER + "hdfc vs axis"},
    ]


@pytest.mark.anyio
async def test_caller_system_prompt_is_kept(make_client):
    stub = ProviderStub(httpx.Response(200, json=perplexity_payload("ok")))
    client = make_client(stub)
    turns = [
        ChatTurn(role="system", content="Be brief."),
        ChatTurn(role="user", content="travel card?"),
        ChatTurn(role="assistant", content="Axis Atlas."),
        ChatTurn(role="user", content="annual fee?"),
    ]

    await client.generate(turns)

    messages = json.loads(stub.requests[0].content)["messages"]
    assert messages[0] == {"role": "system", "content": "Be brief."}
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[1]["content"] == USER_QUALIFIER + "travel card?"
    assert messages[2]["content"] == "Axis Atlas."


def test_qualifier_is_not_doubled(make_client):
    client = make_client(ProviderStub(httpx.Response(200, json=perplexity_payload("ok"))))
    messages = client.prepare_messages(ask(USER_QUALIFIER + "lounge access"))
    assert messages[1]["content"] == USER_QUALIFIER + "lounge access"


@pytest.mark.anyio
async def test_invalid_structure_makes_no_call(make_client):
    stub = ProviderStub(httpx.Response(200, json=perplexity_payload("ok")))
    client = make_client(stub)

    with pytest.raises(InvalidStructure):
        await client.generate([ChatTurn(role="user", content="a"), ChatTurn(role="assistant", content="b")])
    assert stub.requests == []


@pytest.mark.anyio
async def test_rate_limited_is_not_retried(make_client, sleep_recorder):
    stub = ProviderStub(httpx.Response(200, json=perplexity_payload("ok")))
    limiter = FixedWindowRateLimiter(limit=1)
    client = make_client(stub, limiter)

    await client.generate(ask("first"))
    with pytest.raises(RateLimited):
        await client.generate(ask("second"))

    assert len(stub.requests) == 1
    assert sleep_recorder.delays == []


@pytest.mark.anyio
async def test_429_exhausts_retries_with_linear_backoff(make_client, sleep_recorder):
    stub = ProviderStub(httpx.Response(429, json={"error": "too many requests"}))
    client = make_client(stub)

    with pytest.raises(ServiceBusy) as exc_info:
        await client.generate(ask("best cashback card"))

    assert len(stub.requests) == 4
    assert sleep_recorder.delays == [1.0, 2.0, 3.0]
    assert "too many requests" not in exc_info.value.message


@pytest.mark.anyio
async def test_5xx_then_success(make_client, sleep_recorder):
    stub = ProviderStub(
        httpx.Response(502, text="bad gateway"),
        httpx.Response(500, text="boom"),
        httpx.Response(200, json=perplexity_payload("Recovered")),
    )
    client = make_client(stub)

    result = await client.generate(ask("rewards"))

    assert result.content == "Recovered"
    assert len(stub.requests) == 3
    assert sleep_recorder.delays == [1.0, 2.0]


@pytest.mark.anyio
async def test_5xx_exhausted_is_service_error(make_client):
    stub = ProviderStub(httpx.Response(503, text="unavailable"))
    client = make_client(stub)

    with pytest.raises(ServiceError):
        await client.generate(ask("rewards"))
    assert len(stub.requests) == 4


@pytest.mark.anyio
async def test_401_fails_fast(make_client, sleep_recorder):
    stub = ProviderStub(httpx.Response(401, json={"error": "invalid api key"}))
    client = make_client(stub)

    with pytest.raises(AuthError) as exc_info:
        await client.generate(ask("rewards"))

    assert len(stub.requests) == 1
    assert sleep_recorder.delays == []
    assert "invalid api key" not in exc_info.value.message


@pytest.mark.anyio
@pytest.mark.parametrize("status", [400, 403, 404])
async def test_other_4xx_fails_fast_as_unknown(make_client, status):
    stub = ProviderStub(httpx.Response(status, json={"error": "rejected"}))
    client = make_client(stub)

    with pytest.raises(UnknownError):
        await client.generate(ask("rewards"))
    assert len(stub.requests) == 1


@pytest.mark.anyio
async def test_network_errors_are_retried(make_client, sleep_recorder):
    stub = ProviderStub(
        httpx.ConnectError("connection refused"),
        httpx.Response(200, json=perplexity_payload("ok")),
    )
    client = make_client(stub)

    result = await client.generate(ask("rewards"))

    assert result.content == "ok"
    assert sleep_recorder.delays == [1.0]


@pytest.mark.anyio
async def test_network_errors_exhausted_are_unknown(make_client):
    stub = ProviderStub(httpx.ReadTimeout("timed out"))
    client = make_client(stub)

    with pytest.raises(UnknownError):
        await client.generate(ask("rewards"))
    assert len(stub.requests) == 4


@pytest.mark.anyio
async def test_malformed_success_body_is_unknown(make_client):
    stub = ProviderStub(httpx.Response(200, json={"choices": []}))
    client = make_client(stub)

    with pytest.raises(UnknownError):
        await client.generate(ask("rewards"))
    assert len(stub.requests) == 1


@pytest.mark.anyio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": {"content": 42}}]},
        {"choices": [{"message": {"content": "Pick SBI Cashback."}}], "citations": "abc"},
    ],
)
async def test_wrong_field_types_are_unknown(make_client, body):
    stub = ProviderStub(httpx.Response(200, json=body))
    client = make_client(stub)

    with pytest.raises(UnknownError):
        await client.generate(ask("rewards"))
    assert len(stub.requests) == 1


def test_negative_max_retries_is_rejected():
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(ProviderStub(httpx.Response(200))))
    with pytest.raises(ValueError, match="max_retries"):
        PerplexityClient(
            http_client=http_client,
            api_key="pplx-test",
            rate_limiter=FixedWindowRateLimiter(),
            max_retries=-1,
        )


@pytest.mark.anyio
async def test_zero_retries_makes_one_attempt(make_client, sleep_recorder):
    stub = ProviderStub(httpx.Response(503, text="down"))
    client = make_client(stub)
    client.max_retries = 0

    with pytest.raises(ServiceError):
        await client.generate(ask("rewards"))
    assert len(stub.requests) == 1
    assert sleep_recorder.delays == []


@pytest.mark.parametrize(
    ("status", "expected"),
    [(429, True), (500, True), (503, True), (400, False), (401, False), (404, False)],
)
def test_is_retryable_status(status, expected):
    assert is_retryable_status(status) is expected
