"""Relay for backends that already speak the Claude Messages API."""

from collections.abc import AsyncIterator
from typing import ClassVar

import httpx
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse

from ccbridge.adapters.base import (
    STREAM_HEADERS,
    ProviderAdapter,
    parse_json_object,
    passthrough_error,
)
from ccbridge.core.logging import get_logger
from ccbridge.utils.headers import filter_response_headers
from ccbridge.utils.urls import build_url


logger = get_logger(__name__)


class PassthroughAdapter(ProviderAdapter):
    """Forwards the client body as is and relays the backend response unchanged."""

    name: ClassVar[str] = "passthrough"
    path: ClassVar[str] = "messages"

    async def to_backend_request(
        self,
        request: Request,
        base_url: str,
        api_key: str,
        timeout: float | None = None,
    ) -> httpx.Request:
        raw = await request.body()
        # Only checked, never rewritten
        body = parse_json_object(raw)
        url = build_url(base_url, self.path)

        logger.debug(
            "backend_request_built",
            adapter=self.name,
            url=url,
            model=body.get("model"),
            stream=bool(body.get("stream")),
        )
        return httpx.Request(
            "POST",
            url,
            headers=self.backend_headers(request.headers, api_key),
            content=raw,
            extensions=self.backend_timeout(request.headers, timeout),
        )

    async def to_client_response(self, response: httpx.Response) -> Response:
        if response.status_code >= 400:
            return await passthrough_error(response)

        headers = filter_response_headers(response.headers)
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("text/event-stream"):
            return StreamingResponse(
                self._relay(response),
                status_code=response.status_code,
                media_type="text/event-stream",
                headers={**STREAM_HEADERS, **headers},
            )

        body = await response.aread()
        await response.aclose()
        return Response(
            content=body,
            status_code=response.status_code,
            headers=headers,
            media_type="application/json",
        )

    async def _relay(self, response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()
