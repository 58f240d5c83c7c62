"""ISO 8601 timestamps as exchanged with the Nuxeo server.

The server emits UTC instants with millisecond precision and a ``Z`` suffix,
for example ``2024-01-15T10:30:00.123Z``. Trailing zero milliseconds are
dropped on output, so a whole second renders as ``2024-01-15T10:30:00Z``.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta, timezone
from typing import Annotated

from pydantic import BeforeValidator, PlainSerializer


__all__ = [
    "ISO8601Time",
    "format_iso8601",
    "parse_iso8601",
]


_ISO8601_PATTERN = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"(Z|[+-]\d{2}:?\d{2})$"
)


def parse_iso8601(text: str) -> datetime:
    """Parse a server timestamp into an aware UTC datetime.

    A ``Z`` suffix or an explicit ``+HH:MM`` offset is required; fractional
    seconds beyond microseconds are truncated.

    Args:
        text: The timestamp text.

    Returns:
        The instant as a timezone-aware datetime in UTC.

    Raises:
        ValueError: If the text is not a timestamp in the server layout.
    """
    match = _ISO8601_PATTERN.match(text.strip())
    if match is None:
        msg = f"invalid ISO 8601 timestamp: {text!r}"
        raise ValueError(msg)

    year, month, day, hour, minute, second, fraction, zone = match.groups()
    microsecond = int((fraction or "0")[:6].ljust(6, "0"))

    if zone == "Z":
        tzinfo = UTC
    else:
        sign = -1 if zone[0] == "-" else 1
        digits = zone[1:].replace(":", "")
        offset = timedelta(hours=int(digits[:2]), minutes=int(digits[2:]))
        tzinfo = timezone(sign * offset)

    value = datetime(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        microsecond,
        tzinfo=tzinfo,
    )
    return value.astimezone(UTC)


def format_iso8601(value: datetime) -> str:
    """Format a datetime in the server layout.

    Naive datetimes are taken to be UTC.

    Args:
        value: The datetime to format.

    Returns:
        The timestamp text, e.g. ``2024-01-15T10:30:00.5Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    value = value.astimezone(UTC)

    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    millis = value.microsecond // 1000
    if millis:
        text += f".{millis:03d}".rstrip("0")
    return text + "Z"


def _coerce_timestamp(value: object) -> object:
    if isinstance(value, str):
        return parse_iso8601(value)
    return value


ISO8601Time = Annotated[
    datetime,
    BeforeValidator(_coerce_timestamp),
    PlainSerializer(format_iso8601, return_type=str),
]
"""A datetime field decoded from and encoded to the server layout."""
