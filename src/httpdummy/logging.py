# src/httpdummy/logging.py
"""Structured logging configuration for httpdummy.

Uses structlog for development-style console output on stderr: upper-case
colourised level names, the calling file and line on every record, and a
stack trace on error-level records.

Architecture:
    This module configures BOTH structlog and stdlib logging. It uses
    ProcessorFormatter to route stdlib log records (uvicorn, starlette)
    through structlog's processor chain, so every line on stderr has the
    same format.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Environment variables set by systemd for services. When present the
# journal supplies timestamps, so records omit their own.
_SYSTEMD_ENV_VARS: tuple[str, ...] = ("INVOCATION_ID", "JOURNAL_STREAM")

_STACK_LEVELS = frozenset({"error", "critical", "exception"})


def running_under_systemd() -> bool:
    """Return True when the process appears to be a systemd service."""
    return any(os.environ.get(name) for name in _SYSTEMD_ENV_VARS)


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Remove internal structlog fields from output.

    ProcessorFormatter ALWAYS adds _record and _from_structlog when
    processing log records. These are bookkeeping and must not be rendered.
    """
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _uppercase_level(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    event_dict["level"] = event_dict["level"].upper()
    return event_dict


def _stack_on_error(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Attach the call stack to error records that carry no traceback.

    Only applies to records logged through structlog; stdlib records from
    third-party libraries are left alone.
    """
    if method_name in _STACK_LEVELS and "_record" not in event_dict and not event_dict.get("exc_info"):
        event_dict["stack_info"] = True
    return event_dict


def configure_logging(
    *,
    level: str = "INFO",
    timestamps: bool | None = None,
) -> None:
    """Configure structlog and stdlib logging for httpdummy.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
        timestamps: Prefix records with an ISO timestamp. Defaults to True
            unless the process runs under systemd.
    """
    log_level = getattr(logging, level.upper())
    if timestamps is None:
        timestamps = not running_under_systemd()

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _uppercase_level,
    ]
    if timestamps:
        shared_processors.append(structlog.processors.TimeStamper(fmt="iso"))
    shared_processors += [
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.CallsiteParameterAdder(
            [
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
        _stack_on_error,
        structlog.processors.StackInfoRenderer(),
    ]

    level_styles = {name.upper(): style for name, style in structlog.dev.ConsoleRenderer.get_default_level_styles(colors=True).items()}
    final_processors: list[Any] = [
        _remove_internal_fields,
        structlog.dev.ConsoleRenderer(colors=True, level_styles=level_styles),
    ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Disable caching to allow reconfiguration in tests
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a bound logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Bound structlog logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
