"""
Unit tests for OpenRouterClient.
The remote endpoint is replaced with httpx.MockTransport; nothing leaves the process.
"""

import asyncio
import json
import time

import httpx
import pytest

from app.core.config import settings
from app.modules.llm import ChatRequest, ErrorCode, OpenRouterClient, OpenRouterError
from tests.fakes import RecordingTransport, completion, responses


def make_client(transport, **overrides) -> OpenRouterClient:
    opts = dict(api_key="sk-or-test", timeout=5, max_retries=3, retry_delay=0.01)
    opts.update(overrides)
    return OpenRouterClient(transport=transport, **opts)


def json_request(user_message: str = "Make flashcards") -> ChatRequest:
    return (
        ChatRequest()
        .with_model("openai/gpt-4o-mini", temperature=0.2, max_tokens=500)
        .with_system_message("You answer in JSON.")
        .with_json_mode()
        .with_user_message(user_message)
    )


# ── Construction ────────────────────────────────────────────────────────────

def test_missing_api_key_is_rejected(monkeypatch):
    monkeypatch.setattr(settings.openrouter, "api_key", None)
    with pytest.raises(OpenRouterError) as exc_info:
        OpenRouterClient()
    assert exc_info.value.code is ErrorCode.MISSING_API_KEY


def test_explicit_key_wins_over_env(monkeypatch):
    monkeypatch.setattr(settings.openrouter, "api_key", None)
    client = OpenRouterClient(api_key="sk-explicit")
    assert client.api_key == "sk-explicit"


# ── Request building ────────────────────────────────────────────────────────

def test_with_model_merges_parameters_and_keeps_original():
    base = ChatRequest()
    changed = base.with_model("anthropic/claude-3-haiku", temperature=0.1)

    assert base.model == "gpt-4o-mini"
    assert base.parameters.temperature == 0.7
    assert changed.model == "anthropic/claude-3-haiku"
    assert changed.parameters.temperature == 0.1
    assert changed.parameters.max_tokens == base.parameters.max_tokens


def test_payload_places_system_message_first_and_sets_response_format():
    payload = json_request("hello").to_payload()

    assert [m["role"] for m in payload["messages"]] == ["system", "user"]
    assert payload["messages"][1]["content"] == "hello"
    assert payload["response_format"] == {"type": "json_object"}
    assert payload["temperature"] == 0.2
    assert payload["max_tokens"] == 500
    assert payload["top_p"] == 1


def test_payload_without_system_message_or_json_mode():
    payload = ChatRequest().with_user_message("hi").to_payload()
    assert [m["role"] for m in payload["messages"]] == ["user"]
    assert "response_format" not in payload


# ── Success paths ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_json_mode_returns_decoded_object_and_metadata():
    transport = responses(httpx.Response(200, json=completion('{"flashcards": []}')))
    client = make_client(transport)

    result = await client.send(json_request())

    assert result.content == {"flashcards": []}
    assert result.metadata.success is True
    assert result.metadata.attempts == 1
    assert result.metadata.total_tokens == 200
    assert result.metadata.prompt_tokens == 120
    assert result.metadata.duration_ms is not None
    assert result.metadata.request_end_time >= result.metadata.request_start_time
    assert client.last_metadata is result.metadata


@pytest.mark.asyncio
async def test_text_mode_returns_raw_content():
    transport = responses(httpx.Response(200, json=completion("plain answer", usage=False)))
    client = make_client(transport)

    result = await client.send(ChatRequest().with_user_message("hi"))

    assert result.content == "plain answer"
    assert result.metadata.total_tokens is None


@pytest.mark.asyncio
async def test_request_carries_auth_and_attribution_headers():
    transport = responses(httpx.Response(200, json=completion("{}")))
    client = make_client(transport)

    await client.send(json_request())

    sent = transport.requests[0]
    assert sent.url.path.endswith("/chat/completions")
    assert sent.headers["Authorization"] == "Bearer sk-or-test"
    assert sent.headers["X-Title"] == settings.openrouter.app_title
    assert sent.headers["HTTP-Referer"] == settings.openrouter.site_url
    body = json.loads(sent.content)
    assert body["model"] == "openai/gpt-4o-mini"
    assert body["response_format"] == {"type": "json_object"}


# ── Retry policy ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_rate_limit_is_retried_with_exponential_backoff():
    transport = responses(
        httpx.Response(429, json={"error": {"message": "slow down"}}),
        httpx.Response(429, json={"error": {"message": "slow down"}}),
        httpx.Response(200, json=completion('{"ok": true}')),
    )
    client = make_client(transport, retry_delay=0.05)

    started = time.perf_counter()
    result = await client.send(json_request())
    elapsed = time.perf_counter() - started

    assert result.content == {"ok": True}
    assert result.metadata.attempts == 3
    assert len(transport.requests) == 3
    # 0.05 + 0.10
    assert elapsed >= 0.15


@pytest.mark.parametrize("status", [401, 403])
@pytest.mark.asyncio
async def test_authentication_error_is_not_retried(status):
    transport = responses(httpx.Response(status, json={"error": {"message": "bad key"}}))
    client = make_client(transport)

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    err = exc_info.value
    assert err.code is ErrorCode.AUTHENTICATION_ERROR
    assert err.status_code == status
    assert err.message == "bad key"
    assert err.retryable is False
    assert len(transport.requests) == 1
    assert err.metadata.attempts == 1
    assert err.metadata.success is False
    assert err.metadata.error_code is ErrorCode.AUTHENTICATION_ERROR


@pytest.mark.asyncio
async def test_server_error_exhausts_retry_budget():
    transport = responses(httpx.Response(502, text="bad gateway"))
    client = make_client(transport, max_retries=2)

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    err = exc_info.value
    assert err.code is ErrorCode.HTTP_ERROR
    assert err.retryable is True
    assert err.message.startswith("HTTP 502")
    assert len(transport.requests) == 3
    assert err.metadata.attempts == 3


@pytest.mark.asyncio
async def test_client_error_is_not_retried():
    transport = responses(httpx.Response(400, json={"error": {"message": "bad model"}}))
    client = make_client(transport)

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.HTTP_ERROR
    assert exc_info.value.retryable is False
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_network_error_is_retried_then_reported():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    transport = RecordingTransport(handler)
    client = make_client(transport, max_retries=1)

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.NETWORK_ERROR
    assert isinstance(exc_info.value.original_error, httpx.ConnectError)
    assert len(transport.requests) == 2


@pytest.mark.asyncio
async def test_slow_endpoint_times_out():
    async def handler(request):
        await asyncio.sleep(1)
        return httpx.Response(200, json=completion("{}"))

    client = OpenRouterClient(
        api_key="sk-or-test",
        timeout=0.05,
        max_retries=0,
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.TIMEOUT_ERROR
    assert exc_info.value.retryable is True


# ── Response parsing ────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_no_choices_is_invalid_response():
    body = completion("{}")
    body["choices"] = []
    client = make_client(responses(httpx.Response(200, json=body)))

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_empty_content_is_empty_response():
    client = make_client(responses(httpx.Response(200, json=completion(""))))

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.EMPTY_RESPONSE


@pytest.mark.asyncio
async def test_malformed_json_content_is_parse_error():
    transport = responses(httpx.Response(200, json=completion("not json {")))
    client = make_client(transport)

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.JSON_PARSE_ERROR
    assert isinstance(exc_info.value.original_error, json.JSONDecodeError)
    # parse errors are not retried
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_non_json_body_is_invalid_response():
    client = make_client(responses(httpx.Response(200, text="<html>oops</html>")))

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(json_request())

    assert exc_info.value.code is ErrorCode.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_missing_user_message_fails_before_any_request():
    transport = responses(httpx.Response(200, json=completion("{}")))
    client = make_client(transport)

    with pytest.raises(OpenRouterError) as exc_info:
        await client.send(ChatRequest().with_system_message("only system"))

    assert exc_info.value.code is ErrorCode.MISSING_USER_MESSAGE
    assert transport.requests == []
    assert client.last_metadata.success is False
