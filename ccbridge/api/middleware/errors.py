"""Error handlers rendering gateway failures as Claude error envelopes."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ccbridge.core.errors import (
    MalformedRequestError,
    ProxyConnectionError,
    ProxyError,
    ProxyTimeoutError,
    TransformationError,
    UnknownProviderError,
)
from ccbridge.core.logging import get_logger
from ccbridge.models.claude import ErrorDetail, ErrorResponse


logger = get_logger(__name__)


def error_response(status_code: int, error_type: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(type=error_type, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def setup_error_handlers(app: FastAPI) -> None:
    """Setup error handlers for the FastAPI application.

    Backend HTTP errors never reach these handlers; adapters return them to
    the client verbatim.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(MalformedRequestError)
    async def malformed_request_handler(
        request: Request, exc: MalformedRequestError
    ) -> JSONResponse:
        logger.info("malformed_request", error=str(exc), path=request.url.path)
        return error_response(400, "invalid_request_error", str(exc))

    @app.exception_handler(UnknownProviderError)
    async def unknown_provider_handler(
        request: Request, exc: UnknownProviderError
    ) -> JSONResponse:
        logger.warning("unknown_provider", provider=exc.name, path=request.url.path)
        return error_response(404, "not_found_error", str(exc))

    @app.exception_handler(ProxyTimeoutError)
    async def timeout_error_handler(
        request: Request, exc: ProxyTimeoutError
    ) -> JSONResponse:
        logger.error("backend_timeout", error=str(exc), timeout=exc.timeout)
        return error_response(504, "timeout_error", str(exc))

    @app.exception_handler(ProxyConnectionError)
    async def connection_error_handler(
        request: Request, exc: ProxyConnectionError
    ) -> JSONResponse:
        logger.error("backend_connection_failed", error=str(exc), url=exc.url)
        return error_response(502, "api_error", str(exc))

    @app.exception_handler(TransformationError)
    async def transformation_error_handler(
        request: Request, exc: TransformationError
    ) -> JSONResponse:
        logger.error("response_transformation_failed", error=str(exc))
        return error_response(502, "api_error", str(exc))

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
        logger.error("proxy_error", error=str(exc), exc_info=exc)
        return error_response(500, "api_error", str(exc))
