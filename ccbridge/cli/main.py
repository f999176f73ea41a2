"""Command line entry point for the ccbridge gateway."""

from pathlib import Path
from typing import Annotated

import typer
import uvicorn

from ccbridge.api.app import create_app
from ccbridge.config.settings import ConfigurationError, ServerSettings, Settings
from ccbridge.core._version import __version__
from ccbridge.core.logging import get_logger, setup_logging


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ccbridge {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Claude Messages gateway for OpenAI-compatible backends."""


@app.command()
def serve(
    host: Annotated[
        str | None, typer.Option("--host", help="Host to bind the server to")
    ] = None,
    port: Annotated[
        int | None, typer.Option("--port", "-p", help="Port to listen on")
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL"),
    ] = None,
) -> None:
    """Start the gateway server."""
    overrides: dict[str, object] = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if log_level is not None:
        overrides["log_level"] = log_level

    try:
        settings = Settings.from_config(config_path=config)
        if overrides:
            server = ServerSettings.model_validate(
                {**settings.server.model_dump(), **overrides}
            )
            settings = settings.model_copy(update={"server": server})
    except (ConfigurationError, ValueError) as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(1) from e

    setup_logging(
        json_logs=settings.server.json_logs, log_level=settings.server.log_level
    )
    logger.info(
        "cli_serve_starting",
        host=settings.server.host,
        port=settings.server.port,
        providers=sorted(settings.providers),
    )

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


if __name__ == "__main__":
    app()
