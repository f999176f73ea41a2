"""Shared dependencies for the gateway API."""

from typing import Annotated

import httpx
from fastapi import Depends, Request

from ccbridge.config.settings import Settings, get_settings
from ccbridge.core.logging import get_logger


logger = get_logger(__name__)


def get_cached_settings(request: Request) -> Settings:
    """Get the settings the application was created with.

    Args:
        request: FastAPI request object

    Returns:
        Settings instance from app state
    """
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        logger.warning("settings_missing_on_app_state", category="lifecycle")
        settings = get_settings()
        request.app.state.settings = settings
    return settings


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """Get the shared backend HTTP client.

    The lifespan normally creates it; a client is created on first use when
    the application runs without lifespan events.
    """
    client: httpx.AsyncClient | None = getattr(request.app.state, "http_client", None)
    if client is None:
        logger.debug("http_client_created_lazily", category="lifecycle")
        client = httpx.AsyncClient()
        request.app.state.http_client = client
    return client


SettingsDep = Annotated[Settings, Depends(get_cached_settings)]
HTTPClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]
