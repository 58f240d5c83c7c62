"""Structured logging and request correlation."""

from __future__ import annotations

from nuxeo_sdk.observability.logging import (
    LogFormat,
    LogLevel,
    clear_request_context,
    configure_logging,
    current_request_id,
    generate_request_id,
    get_logger,
    redact_secrets,
    set_request_id,
)


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
