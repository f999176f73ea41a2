"""Tests for the two-operation adapter contract shared by translating adapters."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest
from starlette.responses import JSONResponse, StreamingResponse

from ccbridge.adapters import OpenAIChatAdapter
from ccbridge.adapters.base import deadline_from_headers, flatten_message
from ccbridge.core.errors import MalformedRequestError, TransformationError
from ccbridge.models.claude import ClaudeMessage
from tests.helpers.streams import (
    chat_chunk,
    final_blocks,
    make_request,
    parse_client_stream,
    sse_body,
)


BASE_URL = "https://backend.test/v1/"
BODY: dict[str, Any] = {
    "model": "gpt-4o",
    "max_tokens": 100,
    "stream": True,
    "messages": [{"role": "user", "content": "Hi"}],
}


async def read_streaming(response: StreamingResponse) -> str:
    parts = []
    async for part in response.body_iterator:
        parts.append(part if isinstance(part, str) else part.decode("utf-8"))
    return "".join(parts)


# ---------------------------------------------------------------------------
# to_backend_request
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_backend_request_url_body_and_auth(chat_adapter: OpenAIChatAdapter) -> None:
    request = make_request(
        BODY,
        headers={
            "Host": "localhost:8080",
            "X-Api-Key": "client-key",
            "Authorization": "Bearer client-token",
            "Anthropic-Version": "2023-06-01",
            "Content-Length": "123",
            "User-Agent": "claude-cli/1.0",
        },
    )

    backend = await chat_adapter.to_backend_request(request, BASE_URL, "sk-backend")

    assert backend.method == "POST"
    assert str(backend.url) == "https://backend.test/v1/chat/completions"
    assert backend.headers["authorization"] == "Bearer sk-backend"
    assert backend.headers["content-type"] == "application/json"
    assert backend.headers["user-agent"] == "claude-cli/1.0"
    assert backend.headers["anthropic-version"] == "2023-06-01"
    assert "x-api-key" not in backend.headers
    assert backend.headers["host"] == "backend.test"
    assert int(backend.headers["content-length"]) == len(backend.content)

    body = json.loads(backend.content)
    assert body["max_completion_tokens"] == 100
    assert body["messages"] == [{"role": "user", "content": "Hi"}]


@pytest.mark.asyncio
async def test_client_deadline_becomes_backend_timeout(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    request = make_request(BODY, headers={"X-Stainless-Timeout": "42"})

    backend = await chat_adapter.to_backend_request(
        request, BASE_URL, "sk", timeout=600.0
    )

    assert backend.extensions["timeout"] == {
        "connect": 42.0,
        "read": 42.0,
        "write": 42.0,
        "pool": 42.0,
    }


@pytest.mark.asyncio
async def test_provider_timeout_is_the_fallback(chat_adapter: OpenAIChatAdapter) -> None:
    backend = await chat_adapter.to_backend_request(
        make_request(BODY), BASE_URL, "sk", timeout=30.0
    )

    assert backend.extensions["timeout"]["read"] == 30.0


@pytest.mark.asyncio
async def test_no_timeout_extension_without_deadline(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    backend = await chat_adapter.to_backend_request(make_request(BODY), BASE_URL, "sk")

    assert "timeout" not in backend.extensions


@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ({}, None),
        ({"x-stainless-timeout": "12.5"}, 12.5),
        ({"x-stainless-timeout": "soon"}, None),
        ({"x-stainless-timeout": "0"}, None),
    ],
)
def test_deadline_header_parsing(headers: dict[str, str], expected: float | None) -> None:
    assert deadline_from_headers(headers) == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [b"{not json", b"[1, 2]", b""])
async def test_malformed_body_is_rejected(
    chat_adapter: OpenAIChatAdapter, raw: bytes
) -> None:
    with pytest.raises(MalformedRequestError):
        await chat_adapter.to_backend_request(make_request(raw), BASE_URL, "sk")


def test_flatten_message_separates_block_kinds() -> None:
    message = ClaudeMessage.model_validate(
        {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "t1", "content": "r"},
                {"type": "text", "text": "a"},
                {"type": "text", "text": "b"},
            ],
        }
    )

    turn = flatten_message(message)

    assert turn.role == "user"
    assert turn.text == "a\nb"
    assert turn.tool_calls == []
    assert [r.tool_use_id for r in turn.tool_results] == ["t1"]
    assert turn.has_message


# ---------------------------------------------------------------------------
# to_client_response
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_backend_error_is_passed_through_untouched(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    backend = httpx.Response(
        429,
        headers={
            "content-type": "application/json",
            "retry-after": "30",
            "x-ratelimit-remaining-requests": "0",
            "x-request-id": "req_1",
        },
        content=b'{"error":"rate limited"}',
    )

    response = await chat_adapter.to_client_response(backend)

    assert response.status_code == 429
    assert response.body == b'{"error":"rate limited"}'
    assert response.headers["content-type"] == "application/json"
    assert response.headers["retry-after"] == "30"
    assert response.headers["x-ratelimit-remaining-requests"] == "0"
    assert response.headers["x-request-id"] == "req_1"
    assert response.headers["content-length"] == str(len(response.body))


@pytest.mark.asyncio
async def test_backend_error_drops_encoding_and_connection_headers(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    backend = httpx.Response(
        503,
        headers={
            "content-type": "application/json",
            "content-encoding": "identity",
            "connection": "close",
            "retry-after": "5",
        },
        content=b'{"error":"overloaded"}',
    )

    response = await chat_adapter.to_client_response(backend)

    assert "content-encoding" not in response.headers
    assert "connection" not in response.headers
    assert response.headers["retry-after"] == "5"


@pytest.mark.asyncio
async def test_backend_error_with_event_stream_type_is_not_translated(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    backend = httpx.Response(
        500, headers={"content-type": "text/event-stream"}, content=b"boom"
    )

    response = await chat_adapter.to_client_response(backend)

    assert response.status_code == 500
    assert response.body == b"boom"


@pytest.mark.asyncio
async def test_json_response_is_mapped(chat_adapter: OpenAIChatAdapter) -> None:
    backend = httpx.Response(
        200,
        json={
            "id": "chatcmpl-1",
            "model": "gpt-4o",
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": "Hello"},
                    "finish_reason": "stop",
                }
            ],
            "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
        },
    )

    response = await chat_adapter.to_client_response(backend)

    assert isinstance(response, JSONResponse)
    body = json.loads(response.body)
    assert body["type"] == "message"
    assert body["content"] == [{"type": "text", "text": "Hello"}]
    assert body["stop_reason"] == "end_turn"
    assert body["usage"] == {"input_tokens": 3, "output_tokens": 1}


@pytest.mark.asyncio
async def test_non_json_success_body_is_a_transformation_error(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    backend = httpx.Response(
        200, headers={"content-type": "text/plain"}, content=b"hello"
    )

    with pytest.raises(TransformationError):
        await chat_adapter.to_client_response(backend)


@pytest.mark.asyncio
async def test_event_stream_is_driven_through_the_envelope(
    chat_adapter: OpenAIChatAdapter,
) -> None:
    backend_request = await chat_adapter.to_backend_request(
        make_request(BODY), BASE_URL, "sk"
    )
    backend = httpx.Response(
        200,
        headers={"content-type": "text/event-stream; charset=utf-8"},
        content=sse_body(chat_chunk("Hel"), chat_chunk("lo")),
        request=backend_request,
    )

    response = await chat_adapter.to_client_response(backend)

    assert isinstance(response, StreamingResponse)
    assert response.media_type == "text/event-stream"
    events = parse_client_stream(await read_streaming(response))
    assert events[0]["type"] == "message_start"
    assert events[0]["message"]["model"] == "gpt-4o"
    assert [b["text"] for b in final_blocks(events)] == ["Hel", "lo"]
    assert events[-1]["type"] == "message_stop"
    assert backend.is_closed
