# src/httpdummy/config.py
"""Configuration schema and loading for the httpdummy server.

Uses Pydantic for validation with a frozen (immutable) model.
Configuration precedence: CLI > YAML file > defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from httpdummy.errors import ConfigError

DEFAULT_LISTEN_ADDR = "127.0.0.1:3001"


class WebConfig(BaseModel):
    """Web backend configuration.

    Handlers receive this model read-only; it cannot be mutated after
    construction.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    listen_addr: str = Field(
        default=DEFAULT_LISTEN_ADDR,
        min_length=1,
        description="Address to listen on as host:port",
    )
    log_http_requests: bool = Field(
        default=False,
        description="Emit one structured log record per HTTP request",
    )
    code_404_as_200: bool = Field(
        default=False,
        description="Render the not-found page with status 200 instead of 404",
    )

    @field_validator("listen_addr")
    @classmethod
    def validate_listen_addr(cls, v: str) -> str:
        try:
            parse_listen_addr(v)
        except ConfigError as e:
            raise ValueError(str(e)) from e
        return v


def parse_listen_addr(listen_addr: str) -> tuple[str, int]:
    """Split a host:port address.

    An empty host is returned as "" and means every interface, IPv4 and
    IPv6. IPv6 hosts are written in brackets, e.g. "[::1]:3001".

    Raises:
        ConfigError: If the address is empty or the port is not 0-65535.
    """
    if not listen_addr:
        raise ConfigError("missing listen addr")
    host, sep, port_text = listen_addr.rpartition(":")
    if not sep:
        raise ConfigError(f"listen addr {listen_addr!r} is missing a port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise ConfigError(f"listen addr {listen_addr!r}: IPv6 hosts must be in brackets")
    if not port_text.isascii() or not port_text.isdigit() or int(port_text) > 65535:
        raise ConfigError(f"listen addr {listen_addr!r} has an invalid port {port_text!r}")
    return host, int(port_text)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dicts, with override taking precedence.

    Returns a new dict; neither input is mutated.
    """
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    *,
    config_file: Path | None = None,
    cli_overrides: dict[str, Any] | None = None,
) -> WebConfig:
    """Load the web configuration with precedence handling.

    Precedence (highest to lowest):
    1. cli_overrides - Direct overrides from CLI flags
    2. config_file - User's YAML configuration file
    3. defaults - Built-in Pydantic defaults

    Raises:
        FileNotFoundError: If config_file does not exist.
        yaml.YAMLError: If the YAML is malformed.
        ValueError: If the YAML document is not a mapping.
        pydantic.ValidationError: If the final config fails validation.
    """
    config_dict: dict[str, Any] = {}

    if config_file is not None:
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        with config_file.open() as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file '{config_file}' must be a YAML mapping, got {type(loaded).__name__}")
        config_dict = loaded

    if cli_overrides is not None:
        config_dict = deep_merge(config_dict, cli_overrides)

    return WebConfig(**config_dict)
