"""Structured logging for nuxeo-sdk.

Nothing is configured on import: structlog's defaults apply until the
application calls :func:`configure_logging`. The client logs each HTTP call
with its method, path and a correlation id. The id comes from
:func:`set_request_id` when the caller bound one, so all calls made while
handling one unit of work share it.

Example:
    >>> from nuxeo_sdk.observability import configure_logging, set_request_id
    >>> configure_logging("debug", "json")
    >>> set_request_id("import-2024-01")
    'import-2024-01'
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextvars import ContextVar
from enum import StrEnum
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import (
    bind_contextvars,
    clear_contextvars,
    merge_contextvars,
)


if TYPE_CHECKING:
    from collections.abc import MutableMapping

    from structlog.typing import FilteringBoundLogger, Processor, WrappedLogger


__all__ = [
    "LogFormat",
    "LogLevel",
    "clear_request_context",
    "configure_logging",
    "current_request_id",
    "generate_request_id",
    "get_logger",
    "redact_secrets",
    "set_request_id",
]


class LogLevel(StrEnum):
    """Minimum severity accepted by :func:`configure_logging`."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    def to_stdlib_level(self) -> int:
        """Return the matching ``logging`` constant, e.g. ``logging.INFO``."""
        return logging.getLevelNamesMapping()[self.name]


class LogFormat(StrEnum):
    """Shape of each emitted line.

    Attributes:
        CONSOLE: Colored columns for a terminal.
        LOGFMT: ``key=value`` pairs, starting with timestamp and level.
        JSON: One object per line.
    """

    CONSOLE = "console"
    LOGFMT = "logfmt"
    JSON = "json"


# ---------------------------------------------------------------------------
# Correlation ids
# ---------------------------------------------------------------------------

_request_id: ContextVar[str | None] = ContextVar("nuxeo_request_id", default=None)


def generate_request_id() -> str:
    """Return eight random hex digits."""
    return uuid.uuid4().hex[:8]


def set_request_id(request_id: str | None = None) -> str:
    """Bind a correlation id to the current context.

    The id is attached to every SDK log event emitted from this context and
    from tasks created after the call.

    Args:
        request_id: Id to bind; a new one is generated when None.

    Returns:
        The bound id.
    """
    request_id = request_id or generate_request_id()
    _request_id.set(request_id)
    bind_contextvars(request_id=request_id)
    return request_id


def current_request_id() -> str:
    """Return the bound correlation id, or a one-off id when none is bound."""
    return _request_id.get() or generate_request_id()


def clear_request_context() -> None:
    """Unbind the correlation id along with all structlog contextvars."""
    _request_id.set(None)
    clear_contextvars()


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------

_SECRET_KEYS = frozenset(
    {
        "authorization",
        "password",
        "token",
        "access_token",
        "refresh_token",
        "client_secret",
        "x-authentication-token",
    }
)


def redact_secrets(
    _logger: WrappedLogger,
    _method: str,
    event_dict: MutableMapping[str, object],
) -> MutableMapping[str, object]:
    """Mask credential values, including inside a bound ``headers`` mapping."""
    for key in event_dict.keys() & _SECRET_KEYS:
        event_dict[key] = "***"
    headers = event_dict.get("headers")
    if isinstance(headers, dict):
        event_dict["headers"] = {
            name: "***" if name.lower() in _SECRET_KEYS else value
            for name, value in headers.items()
        }
    return event_dict


def _renderer(log_format: LogFormat) -> Processor:
    match log_format:
        case LogFormat.JSON:
            return structlog.processors.JSONRenderer()
        case LogFormat.CONSOLE:
            return structlog.dev.ConsoleRenderer(
                exception_formatter=structlog.dev.plain_traceback,
            )
        case _:
            return structlog.processors.LogfmtRenderer(
                key_order=["timestamp", "level", "event", "request_id"],
                drop_missing=True,
            )


def _pick_format(log_format: LogFormat | str | None) -> LogFormat:
    if log_format is not None:
        return LogFormat(log_format)
    if sys.stderr is not None and sys.stderr.isatty():
        return LogFormat.CONSOLE
    return LogFormat.LOGFMT


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    log_format: LogFormat | str | None = None,
) -> None:
    """Route structlog and stdlib logging to stderr.

    Args:
        level: Minimum level, as a :class:`LogLevel` or its name in any case.
        log_format: Line format; console on a terminal and logfmt otherwise
            when None.

    Raises:
        ValueError: If the level or format is unknown.
    """
    level = LogLevel(level.lower())
    log_format = _pick_format(log_format)
    threshold = level.to_stdlib_level()

    processors: list[Processor] = [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]
    if log_format is not LogFormat.CONSOLE:
        processors.append(structlog.processors.format_exc_info)
    processors.append(_renderer(log_format))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    # httpx and httpcore log through the stdlib
    logging.basicConfig(
        format="%(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
        level=threshold,
        force=True,
    )


def get_logger(
    name: str | None = None,
    **initial_context: object,
) -> FilteringBoundLogger:
    """Return a structlog logger, bound to ``initial_context`` when given."""
    logger: FilteringBoundLogger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger
