"""Claude Messages endpoint routed to the configured backends."""

import httpx
from fastapi import APIRouter, Request, Response

from ccbridge.adapters import get_adapter
from ccbridge.adapters.base import parse_json_object
from ccbridge.api.dependencies import HTTPClientDep, SettingsDep
from ccbridge.core.errors import (
    ProxyConnectionError,
    ProxyTimeoutError,
    UnknownProviderError,
)
from ccbridge.core.logging import get_logger


router = APIRouter()
logger = get_logger(__name__)


@router.post("/v1/messages")
async def create_message(
    request: Request,
    settings: SettingsDep,
    client: HTTPClientDep,
) -> Response:
    """Translate a Messages request for its provider and relay the answer."""
    body = parse_json_object(await request.body())
    model = body.get("model")
    model_name = model if isinstance(model, str) else None

    try:
        provider_name, provider = settings.resolve_provider(model_name)
    except KeyError as e:
        raise UnknownProviderError(str(e.args[0]) if e.args else "", cause=e) from e

    adapter = get_adapter(provider.adapter, **provider.adapter_options())
    backend_request = await adapter.to_backend_request(
        request,
        provider.base_url,
        provider.api_key.get_secret_value(),
        timeout=provider.timeout,
    )

    logger.info(
        "backend_request_started",
        provider=provider_name,
        adapter=adapter.name,
        model=model_name,
        stream=bool(body.get("stream")),
    )

    try:
        response = await client.send(backend_request, stream=True)
    except httpx.TimeoutException as e:
        raise ProxyTimeoutError(
            f"Backend '{provider_name}' timed out", timeout=provider.timeout, cause=e
        ) from e
    except httpx.RequestError as e:
        raise ProxyConnectionError(
            f"Cannot reach backend '{provider_name}': {e}",
            url=str(backend_request.url),
            cause=e,
        ) from e

    logger.info(
        "backend_response_received",
        provider=provider_name,
        status_code=response.status_code,
        content_type=response.headers.get("content-type"),
    )
    return await adapter.to_client_response(response)
