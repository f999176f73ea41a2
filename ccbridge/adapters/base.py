"""Provider adapter contract and the request-mapping helpers shared by dialects."""

import json
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

import httpx
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse

from ccbridge.core.errors import MalformedRequestError, TransformationError
from ccbridge.core.logging import get_logger
from ccbridge.models.claude import (
    ClaudeMessage,
    MessageResponse,
    MessagesRequest,
    OtherBlock,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from ccbridge.streaming import DeltaDecoder, SSEEnvelopeDriver
from ccbridge.utils.headers import filter_request_headers, filter_response_headers
from ccbridge.utils.urls import build_url


logger = get_logger(__name__)

# Client deadline in seconds, as sent by the Anthropic SDKs
DEADLINE_HEADER = "x-stainless-timeout"

STREAM_HEADERS = {
    "cache-control": "no-cache",
    "connection": "keep-alive",
    "x-accel-buffering": "no",
}


@dataclass
class FlatTurn:
    """One client message reduced to what a backend message list needs."""

    role: str
    text: str | None = None
    tool_calls: list[ToolUseBlock] = field(default_factory=list)
    tool_results: list[ToolResultBlock] = field(default_factory=list)

    @property
    def has_message(self) -> bool:
        return self.text is not None or bool(self.tool_calls)


def backend_role(role: str) -> str:
    """Role of a consolidated backend message; tool turns are spoken by the user."""
    if role in ("assistant", "system"):
        return role
    return "user"


def flatten_message(message: ClaudeMessage) -> FlatTurn:
    """Join text blocks with newlines and separate tool calls from tool results."""
    turn = FlatTurn(role=backend_role(message.role))
    if isinstance(message.content, str):
        turn.text = message.content
        return turn

    texts: list[str] = []
    for block in message.content:
        if isinstance(block, TextBlock):
            texts.append(block.text)
        elif isinstance(block, ToolUseBlock):
            turn.tool_calls.append(block)
        elif isinstance(block, ToolResultBlock):
            turn.tool_results.append(block)
        elif isinstance(block, OtherBlock):
            logger.debug("content_block_not_mapped", block_type=block.type)

    if texts:
        turn.text = "\n".join(texts)
    return turn


def tool_result_text(block: ToolResultBlock) -> str:
    """Tool results travel as text; structured results are JSON encoded."""
    if isinstance(block.content, str):
        return block.content
    return json.dumps(block.content, ensure_ascii=False)


def parse_json_object(raw: bytes | str) -> dict[str, Any]:
    """Parse a client body that must be a JSON object.

    Raises:
        MalformedRequestError: If the body is not JSON or not an object
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedRequestError("Request body is not valid JSON", cause=e) from e
    if not isinstance(data, dict):
        raise MalformedRequestError("Request body must be a JSON object", data=data)
    return data


def parse_messages_request(data: Mapping[str, Any]) -> MessagesRequest:
    """Validate a client body against the Messages request shape.

    Raises:
        MalformedRequestError: If required fields are missing or mistyped
    """
    try:
        return MessagesRequest.model_validate(data)
    except ValidationError as e:
        raise MalformedRequestError(
            f"Invalid Messages request: {e.error_count()} validation error(s)",
            data=e.errors(include_url=False),
            cause=e,
        ) from e


def deadline_from_headers(headers: Mapping[str, str]) -> float | None:
    """Return the client's deadline in seconds, if it sent a usable one."""
    value = headers.get(DEADLINE_HEADER)
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        logger.debug("client_deadline_ignored", value=value)
        return None
    return seconds if seconds > 0 else None


def requested_model(response: httpx.Response) -> str:
    """Read the model name back from the request that produced ``response``."""
    try:
        content = response.request.content
    except (RuntimeError, httpx.RequestNotRead):
        return ""
    try:
        body = json.loads(content)
    except ValueError:
        return ""
    model = body.get("model") if isinstance(body, dict) else None
    return model if isinstance(model, str) else ""


async def passthrough_error(response: httpx.Response) -> Response:
    """Return a backend error status, headers and body to the client untouched."""
    body = await response.aread()
    await response.aclose()
    logger.info(
        "backend_error_passed_through",
        status_code=response.status_code,
        body_size=len(body),
        retry_after=response.headers.get("retry-after"),
    )
    return Response(
        content=body,
        status_code=response.status_code,
        headers=filter_response_headers(response.headers),
    )


class ProviderAdapter(ABC):
    """Uniform two-operation contract the router drives for every backend.

    Adapters are stateless and shared by concurrent requests.
    """

    name: ClassVar[str]
    path: ClassVar[str]

    @abstractmethod
    async def to_backend_request(
        self,
        request: Request,
        base_url: str,
        api_key: str,
        timeout: float | None = None,
    ) -> httpx.Request:
        """Build the backend HTTP request for an inbound client request.

        Args:
            request: The inbound client request
            base_url: Backend base URL the dialect path is appended to
            api_key: Bearer credential for the backend
            timeout: Fallback timeout when the client sent no deadline

        Raises:
            MalformedRequestError: If the client body is not a valid request
        """

    @abstractmethod
    async def to_client_response(self, response: httpx.Response) -> Response:
        """Turn a backend response, sent with ``stream=True``, into the client response."""

    def backend_headers(
        self, inbound: Mapping[str, str], api_key: str
    ) -> dict[str, str]:
        headers = filter_request_headers(inbound.items())
        headers["Authorization"] = f"Bearer {api_key}"
        headers["Content-Type"] = "application/json"
        return headers

    def backend_timeout(
        self, inbound: Mapping[str, str], timeout: float | None
    ) -> dict[str, Any] | None:
        """Request extensions carrying the client's deadline, else ``timeout``."""
        deadline = deadline_from_headers(inbound) or timeout
        if not deadline:
            return None
        return {"timeout": httpx.Timeout(deadline).as_dict()}


class TranslatingAdapter(ProviderAdapter):
    """Adapter that rewrites bodies between Claude and another dialect.

    Per-response streaming state lives in the decoder returned by
    ``create_decoder``.
    """

    # Tool results of a turn go ahead of that turn's own message
    tool_results_first: ClassVar[bool] = True

    async def to_backend_request(
        self,
        request: Request,
        base_url: str,
        api_key: str,
        timeout: float | None = None,
    ) -> httpx.Request:
        body = parse_json_object(await request.body())
        backend_body = self.map_request(body)
        url = build_url(base_url, self.path)
        extensions = self.backend_timeout(request.headers, timeout)

        logger.debug(
            "backend_request_built",
            adapter=self.name,
            url=url,
            model=backend_body.get("model"),
            stream=bool(backend_body.get("stream")),
            has_timeout=extensions is not None,
        )
        return httpx.Request(
            "POST",
            url,
            headers=self.backend_headers(request.headers, api_key),
            content=json.dumps(backend_body, ensure_ascii=False).encode("utf-8"),
            extensions=extensions,
        )

    async def to_client_response(self, response: httpx.Response) -> Response:
        """Translate a backend response.

        Errors pass through verbatim, ``text/event-stream`` bodies go through
        the SSE envelope driver and anything else is mapped as one JSON
        document.

        Raises:
            TransformationError: If a successful non-streaming body is not JSON
        """
        if response.status_code >= 400:
            return await passthrough_error(response)

        content_type = response.headers.get("content-type", "")
        if content_type.startswith("text/event-stream"):
            driver = SSEEnvelopeDriver(
                self.create_decoder(), model=requested_model(response)
            )
            return StreamingResponse(
                self._relay(driver, response),
                status_code=response.status_code,
                media_type="text/event-stream",
                headers=STREAM_HEADERS,
            )

        raw = await response.aread()
        await response.aclose()
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise TransformationError(
                "Backend returned a non-JSON response body", data=raw[:200], cause=e
            ) from e
        if not isinstance(data, dict):
            raise TransformationError("Backend response is not a JSON object", data=data)

        try:
            message = self.map_response(data)
        except ValidationError as e:
            raise TransformationError(
                "Backend response has an unexpected shape", data=data, cause=e
            ) from e
        return JSONResponse(
            content=message.model_dump(mode="json"),
            status_code=response.status_code,
        )

    async def _relay(
        self, driver: SSEEnvelopeDriver, response: httpx.Response
    ) -> AsyncIterator[str]:
        try:
            async for text in driver.stream(response.aiter_bytes()):
                yield text
        finally:
            await response.aclose()

    def map_request(self, body: dict[str, Any]) -> dict[str, Any]:
        """Map a client JSON body to the backend JSON body."""
        return self.build_backend_body(parse_messages_request(body))

    @abstractmethod
    def build_backend_body(self, request: MessagesRequest) -> dict[str, Any]:
        """Build the backend body from a validated Messages request."""

    @abstractmethod
    def map_response(self, data: dict[str, Any]) -> MessageResponse:
        """Map a complete backend JSON response to a Claude message."""

    @abstractmethod
    def create_decoder(self) -> DeltaDecoder:
        """Return fresh per-response stream decoding state."""
