"""Translation of HTTP responses and httpx failures into SDK values.

These helpers are shared by the client pipeline and by the operation
response handle: error envelopes become :class:`NuxeoServerError`, other
failing answers :class:`NuxeoHTTPError`, and httpx exceptions raised while
sending or streaming become transport or cancellation errors.
"""

from __future__ import annotations

from email.message import EmailMessage, Message
from typing import TYPE_CHECKING

import httpx

from nuxeo_sdk.exceptions import (
    NuxeoCancelledError,
    NuxeoError,
    NuxeoHTTPError,
    NuxeoServerError,
    NuxeoTransportError,
)
from nuxeo_sdk.models.blob import DEFAULT_MIME_TYPE, Blob


if TYPE_CHECKING:
    from collections.abc import AsyncIterator


__all__ = [
    "blob_from_response",
    "error_from_response",
    "is_json_media_type",
    "iter_response_bytes",
    "map_transport_error",
    "parse_content_length",
    "parse_content_type",
    "parse_disposition_filename",
    "raise_for_response",
]


EXCEPTION_ENTITY_TYPE = "exception"


# ---------------------------------------------------------------------------
# Header parsing
# ---------------------------------------------------------------------------


def parse_content_type(value: str | None) -> tuple[str, dict[str, str]]:
    """Split a Content-Type header into its media type and parameters.

    Args:
        value: The header value, possibly missing.

    Returns:
        The lowercased media type (empty when absent) and its parameters.

    Example:
        >>> parse_content_type('multipart/related; boundary="b1"')
        ('multipart/related', {'boundary': 'b1'})
    """
    if not value:
        return "", {}
    message = Message()
    message["Content-Type"] = value
    params = {
        key.lower(): str(param)
        for key, param in message.get_params(failobj=[])[1:]
    }
    return message.get_content_type(), params


def is_json_media_type(media_type: str) -> bool:
    """Return True for ``application/json`` and ``+json`` media types."""
    return media_type.startswith("application/json") or media_type.endswith("+json")


def parse_disposition_filename(value: str | None) -> str:
    """Extract the file name of a Content-Disposition header.

    RFC 2231 encoded names (``filename*=UTF-8''...``) are decoded.

    Returns:
        The file name, or an empty string when none is announced.
    """
    if not value:
        return ""
    message = EmailMessage()
    message["Content-Disposition"] = value
    return message.get_filename() or ""


def parse_content_length(value: str | None) -> int:
    """Parse a Content-Length header, returning -1 if absent or malformed."""
    if value is None:
        return -1
    try:
        length = int(value.strip())
    except ValueError:
        return -1
    return length if length >= 0 else -1


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def map_transport_error(exc: httpx.HTTPError) -> NuxeoError:
    """Translate an httpx exception raised below HTTP semantics.

    Args:
        exc: The exception raised while sending or streaming.

    Returns:
        A :class:`NuxeoCancelledError` for timeouts, a
        :class:`NuxeoTransportError` otherwise. Both chain ``exc``.
    """
    if isinstance(exc, httpx.TimeoutException):
        return NuxeoCancelledError(f"Request deadline exceeded: {exc}", cause=exc)
    return NuxeoTransportError(f"Failed to reach the Nuxeo server: {exc}", cause=exc)


def error_from_response(response: httpx.Response) -> NuxeoError:
    """Build the error describing a failed, already read response.

    Args:
        response: A 4xx/5xx response whose body has been read.

    Returns:
        :class:`NuxeoServerError` when the body is the server exception
        envelope, :class:`NuxeoHTTPError` carrying a body snippet otherwise.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and data.get("entity-type") == EXCEPTION_ENTITY_TYPE:
        status = data.get("status")
        if not isinstance(status, int) or isinstance(status, bool):
            status = response.status_code
        return NuxeoServerError(
            status,
            str(data.get("message") or ""),
            str(data.get("stacktrace") or ""),
            response=response,
        )

    try:
        body = response.text
    except (LookupError, ValueError):
        body = ""
    return NuxeoHTTPError(response.status_code, body, response=response)


async def raise_for_response(response: httpx.Response) -> None:
    """Raise the SDK error for a failing response, closing it.

    Args:
        response: A streamed response.

    Raises:
        NuxeoServerError: For the server exception envelope.
        NuxeoHTTPError: For any other 4xx/5xx answer.
        NuxeoTransportError: If the error body cannot be read.
    """
    if response.is_success:
        return
    try:
        await response.aread()
    except httpx.HTTPError as exc:
        raise map_transport_error(exc) from exc
    finally:
        await response.aclose()
    raise error_from_response(response)


# ---------------------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------------------


async def iter_response_bytes(
    response: httpx.Response,
    chunk_size: int | None = None,
) -> AsyncIterator[bytes]:
    """Iterate a streamed response body, translating httpx failures."""
    try:
        async for chunk in response.aiter_bytes(chunk_size):
            yield chunk
    except httpx.HTTPError as exc:
        raise map_transport_error(exc) from exc


def blob_from_response(response: httpx.Response) -> Blob:
    """Wrap a streamed 2xx response as a :class:`Blob`.

    The filename comes from Content-Disposition, the MIME type from
    Content-Type (without parameters) and the length from Content-Length.
    Closing the blob closes the response.
    """
    media_type, _ = parse_content_type(response.headers.get("Content-Type"))
    return Blob(
        parse_disposition_filename(response.headers.get("Content-Disposition")),
        media_type or DEFAULT_MIME_TYPE,
        parse_content_length(response.headers.get("Content-Length")),
        iter_response_bytes(response),
        digest=response.headers.get("Digest"),
        on_close=response.aclose,
    )
