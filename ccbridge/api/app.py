"""FastAPI application factory for the ccbridge gateway."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI

from ccbridge.api.middleware.errors import setup_error_handlers
from ccbridge.api.routes.health import router as health_router
from ccbridge.api.routes.messages import router as messages_router
from ccbridge.config.settings import Settings, get_settings
from ccbridge.core import __version__
from ccbridge.core.logging import get_logger, setup_logging


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Own the shared backend client for the lifetime of the server."""
    settings: Settings = app.state.settings

    logger.info(
        "server_start",
        host=settings.server.host,
        port=settings.server.port,
        url=f"http://{settings.server.host}:{settings.server.port}",
        providers=sorted(settings.providers),
        category="lifecycle",
    )

    owns_client = getattr(app.state, "http_client", None) is None
    if owns_client:
        app.state.http_client = httpx.AsyncClient()

    yield

    logger.debug("server_stop", category="lifecycle")
    if owns_client:
        await app.state.http_client.aclose()
        app.state.http_client = None


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()
    if not structlog.is_configured():
        setup_logging(
            json_logs=settings.server.json_logs,
            log_level=settings.server.log_level,
        )

    app = FastAPI(
        title="ccbridge",
        description="Claude Messages API gateway for OpenAI-compatible backends",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http_client = http_client

    setup_error_handlers(app)

    app.include_router(health_router, tags=["health"])
    app.include_router(messages_router, tags=["messages"])

    return app
