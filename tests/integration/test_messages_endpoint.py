"""End-to-end tests for POST /v1/messages and /health with mocked backends."""

import json
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from pytest_httpx import HTTPXMock

from ccbridge.api.app import create_app
from ccbridge.config.settings import ProviderSettings, ServerSettings, Settings
from tests.conftest import CHAT_BASE_URL, CLAUDE_BASE_URL, RESPONSES_BASE_URL
from tests.helpers.streams import (
    chat_chunk,
    final_blocks,
    final_stop_reason,
    parse_client_stream,
    sse_body,
    tool_delta,
)


def messages_body(model: str = "gpt-4o", **extra: Any) -> dict[str, Any]:
    return {
        "model": model,
        "max_tokens": 64,
        "messages": [{"role": "user", "content": "What is the weather?"}],
        **extra,
    }


CHAT_COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "created": 1700000000,
    "model": "gpt-4o",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Sunny."},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 12, "completion_tokens": 2, "total_tokens": 14},
}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_chat_completion_is_translated(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST", url=f"{CHAT_BASE_URL}/chat/completions", json=CHAT_COMPLETION
    )

    response = await async_client.post(
        "/v1/messages",
        json=messages_body(system="Be brief."),
        headers={"x-api-key": "client-key", "anthropic-version": "2023-06-01"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["type"] == "message"
    assert data["role"] == "assistant"
    assert data["id"].startswith("msg_")
    assert data["content"] == [{"type": "text", "text": "Sunny."}]
    assert data["stop_reason"] == "end_turn"
    assert data["usage"] == {"input_tokens": 12, "output_tokens": 2}

    backend_request = httpx_mock.get_request()
    assert backend_request is not None
    assert backend_request.headers["authorization"] == "Bearer sk-chat"
    assert "x-api-key" not in backend_request.headers
    sent = json.loads(backend_request.content)
    assert sent["messages"] == [
        {"role": "system", "content": "Be brief."},
        {"role": "user", "content": "What is the weather?"},
    ]
    assert sent["max_completion_tokens"] == 64


@pytest.mark.asyncio
@pytest.mark.integration
async def test_chat_stream_is_converted_to_claude_events(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=f"{CHAT_BASE_URL}/chat/completions",
        headers={"content-type": "text/event-stream"},
        content=sse_body(
            chat_chunk("Checking"),
            chat_chunk(tool_calls=[tool_delta(0, "call_1", "get_weather", '{"city"')]),
            chat_chunk(tool_calls=[tool_delta(0, arguments=':"Paris"}')]),
            chat_chunk(finish_reason="tool_calls"),
            chat_chunk(usage={"prompt_tokens": 20, "completion_tokens": 7}),
        ),
    )

    response = await async_client.post(
        "/v1/messages",
        json=messages_body(
            stream=True,
            tools=[{"name": "get_weather", "input_schema": {"type": "object"}}],
        ),
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    assert response.headers["cache-control"] == "no-cache"
    events = parse_client_stream(response.text)
    assert events[0]["type"] == "message_start"
    assert events[-1]["type"] == "message_stop"
    assert final_blocks(events) == [
        {"type": "text", "text": "Checking"},
        {
            "type": "tool_use",
            "id": "call_1",
            "name": "get_weather",
            "input": {"city": "Paris"},
        },
    ]
    assert final_stop_reason(events) == "tool_use"
    assert "event: message_start" in response.text

    sent = json.loads(httpx_mock.get_request().content)
    assert sent["stream"] is True
    assert sent["stream_options"] == {"include_usage": True}
    assert sent["tools"][0]["function"]["name"] == "get_weather"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_model_route_selects_responses_backend(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=f"{RESPONSES_BASE_URL}/responses",
        json={
            "id": "resp_1",
            "object": "response",
            "model": "gpt-5",
            "status": "completed",
            "output": [
                {
                    "type": "message",
                    "id": "msg_1",
                    "role": "assistant",
                    "content": [{"type": "output_text", "text": "Rainy."}],
                }
            ],
            "usage": {"input_tokens": 8, "output_tokens": 2},
        },
    )

    response = await async_client.post("/v1/messages", json=messages_body("gpt-5"))

    assert response.status_code == 200
    assert response.json()["content"] == [{"type": "text", "text": "Rainy."}]

    backend_request = httpx_mock.get_request()
    assert backend_request.headers["authorization"] == "Bearer sk-responses"
    sent = json.loads(backend_request.content)
    assert sent["input"] == [
        {"type": "message", "role": "user", "content": "What is the weather?"}
    ]
    assert sent["max_output_tokens"] == 64
    assert sent["store"] is False


@pytest.mark.asyncio
@pytest.mark.integration
async def test_passthrough_provider_relays_verbatim(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    upstream = {
        "id": "msg_upstream",
        "type": "message",
        "role": "assistant",
        "model": "claude-sonnet-4",
        "content": [{"type": "text", "text": "Hello"}],
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 3, "output_tokens": 1},
    }
    httpx_mock.add_response(
        method="POST", url=f"{CLAUDE_BASE_URL}/messages", json=upstream
    )
    raw = json.dumps(messages_body("claude-sonnet-4")).encode("utf-8")

    response = await async_client.post(
        "/v1/messages", content=raw, headers={"content-type": "application/json"}
    )

    assert response.status_code == 200
    assert response.json() == upstream
    backend_request = httpx_mock.get_request()
    assert backend_request.content == raw
    assert backend_request.headers["authorization"] == "Bearer sk-claude"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_backend_error_reaches_client_untouched(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=f"{CHAT_BASE_URL}/chat/completions",
        status_code=429,
        headers={"retry-after": "30"},
        json={"error": "rate limited"},
    )

    response = await async_client.post("/v1/messages", json=messages_body())

    assert response.status_code == 429
    assert response.json() == {"error": "rate limited"}
    assert response.headers["retry-after"] == "30"


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize("raw", [b"{not json", b'"a string"'])
async def test_malformed_body_gets_invalid_request_error(
    async_client: AsyncClient, raw: bytes
) -> None:
    response = await async_client.post(
        "/v1/messages", content=raw, headers={"content-type": "application/json"}
    )

    assert response.status_code == 400
    data = response.json()
    assert data["type"] == "error"
    assert data["error"]["type"] == "invalid_request_error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unresolvable_model_gets_not_found_error() -> None:
    settings = Settings(
        server=ServerSettings(log_level="WARNING"),
        providers={
            "a": ProviderSettings(base_url=CHAT_BASE_URL, api_key=SecretStr("k")),
            "b": ProviderSettings(base_url=RESPONSES_BASE_URL, api_key=SecretStr("k")),
        },
    )
    app = create_app(settings=settings)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.post("/v1/messages", json=messages_body("mystery"))
    if app.state.http_client is not None:
        await app.state.http_client.aclose()

    assert response.status_code == 404
    assert response.json()["error"]["type"] == "not_found_error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unreachable_backend_is_bad_gateway(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_exception(httpx.ConnectError("connection refused"))

    response = await async_client.post("/v1/messages", json=messages_body())

    assert response.status_code == 502
    assert response.json()["error"]["type"] == "api_error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_backend_timeout_is_gateway_timeout(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_exception(httpx.ReadTimeout("read timed out"))

    response = await async_client.post(
        "/v1/messages", json=messages_body(), headers={"x-stainless-timeout": "5"}
    )

    assert response.status_code == 504
    assert response.json()["error"]["type"] == "timeout_error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unparseable_success_body_is_bad_gateway(
    async_client: AsyncClient, httpx_mock: HTTPXMock
) -> None:
    httpx_mock.add_response(
        method="POST",
        url=f"{CHAT_BASE_URL}/chat/completions",
        headers={"content-type": "text/html"},
        content=b"<html>gateway</html>",
    )

    response = await async_client.post("/v1/messages", json=messages_body())

    assert response.status_code == 502
    assert response.json()["error"]["type"] == "api_error"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_health(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pass"
    assert data["service_id"] == "ccbridge"
    assert data["providers"]["responses"] == {
        "adapter": "openai_responses",
        "base_url": RESPONSES_BASE_URL,
    }
