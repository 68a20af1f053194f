# src/httpdummy/cli.py
"""CLI for the httpdummy server.

Usage:
    httpdummy                                   # Listen on 127.0.0.1:3001
    httpdummy --listen-addr=0.0.0.0:8080        # Custom address
    LISTEN_ADDR=:8080 httpdummy                 # Address from environment
    httpdummy --log-http-requests               # Log every request
    httpdummy --config=httpdummy.yaml           # Settings from YAML
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import pydantic
import typer
import yaml

from httpdummy import __version__
from httpdummy.config import DEFAULT_LISTEN_ADDR, load_config
from httpdummy.errors import BindError, ConfigError
from httpdummy.limits import raise_nofile_limit
from httpdummy.logging import configure_logging, get_logger
from httpdummy.metrics import register_runtime_stats
from httpdummy.web.server import WebBackend

APP_NAME = "httpdummy"

app = typer.Typer(
    name=APP_NAME,
    help="dummy http server with some diagnostic paths",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"{APP_NAME} {__version__}")
        raise typer.Exit()


@app.command(context_settings={"help_option_names": []})
def serve(
    ctx: typer.Context,
    show_help: Annotated[
        bool,
        typer.Option("--help", "-h", help="Show help and exit with status 1."),
    ] = False,
    log_http_requests: Annotated[
        bool | None,
        typer.Option("--log-http-requests/--no-log-http-requests", help="Log HTTP requests."),
    ] = None,
    listen_addr: Annotated[
        str | None,
        typer.Option(
            "--listen-addr",
            envvar="LISTEN_ADDR",
            help="Listen addr as host:port.",
            show_default=DEFAULT_LISTEN_ADDR,
        ),
    ] = None,
    code_404_as_200: Annotated[
        bool | None,
        typer.Option("--code-404-as-200/--no-code-404-as-200", help="Answer unknown paths with status 200."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to YAML configuration file.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ] = None,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=_version_callback,
            is_eager=True,
            help="Show version.",
        ),
    ] = False,
) -> None:
    """Start the dummy HTTP backend.

    Configuration precedence (highest to lowest):
    1. Command-line flags (and LISTEN_ADDR)
    2. Config file (--config)
    3. Built-in defaults
    """
    if show_help:
        typer.echo(ctx.get_help())
        raise typer.Exit(1)

    logger = get_logger(APP_NAME)

    cli_overrides: dict[str, Any] = {}
    if listen_addr is not None:
        cli_overrides["listen_addr"] = listen_addr
    if log_http_requests is not None:
        cli_overrides["log_http_requests"] = log_http_requests
    if code_404_as_200 is not None:
        cli_overrides["code_404_as_200"] = code_404_as_200

    try:
        config = load_config(config_file=config_file, cli_overrides=cli_overrides)
    except FileNotFoundError as e:
        logger.error("config file not found", error=str(e))
        raise typer.Exit(1) from e
    except (pydantic.ValidationError, yaml.YAMLError, ValueError) as e:
        logger.error("configuration error", error=str(e))
        raise typer.Exit(1) from e

    try:
        backend = WebBackend(config, logger)
        backend.run()
    except (ConfigError, BindError) as e:
        logger.error("error starting web listener", error=str(e))
        raise typer.Exit(1) from e


def main() -> None:
    """Entry point for the httpdummy CLI."""
    configure_logging()
    get_logger(APP_NAME).info("starting", name=APP_NAME, version=__version__)
    raise_nofile_limit()
    register_runtime_stats()
    app()


if __name__ == "__main__":
    main()
