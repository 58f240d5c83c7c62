"""Exception hierarchy for the Nuxeo client.

Every failure surfaced by the SDK is a subclass of :class:`NuxeoError`, so
callers can catch all client errors with a single except clause and still
branch on the specific kind when they need to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    import httpx


__all__ = [
    "NuxeoAuthError",
    "NuxeoCancelledError",
    "NuxeoConfigError",
    "NuxeoDecodeError",
    "NuxeoError",
    "NuxeoHTTPError",
    "NuxeoServerError",
    "NuxeoTransportError",
    "NuxeoUsageError",
]


class NuxeoError(Exception):
    """Base exception for all Nuxeo client errors.

    Attributes:
        message: Human-readable error description.
        response: The HTTP response that caused this error, if available.
    """

    def __init__(
        self,
        message: str,
        *,
        response: httpx.Response | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            response: The HTTP response that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.response = response

    def __str__(self) -> str:
        """Return string representation with status code if available."""
        if self.response is not None:
            return f"{self.message} (status={self.response.status_code})"
        return self.message


class NuxeoConfigError(NuxeoError):
    """Raised for invalid client construction or ill-formed request options."""


class NuxeoAuthError(NuxeoError):
    """Raised when an authenticator cannot produce credentials.

    This covers OAuth2 grant failures (client credentials, code exchange,
    refresh) and custom authenticators refusing to sign a request.

    Attributes:
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        *,
        cause: BaseException | None = None,
        response: httpx.Response | None = None,
    ) -> None:
        """Initialize the authentication error.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused this error.
            response: The token endpoint response, if any.
        """
        super().__init__(message, response=response)
        self.cause = cause
        self.__cause__ = cause


class NuxeoTransportError(NuxeoError):
    """Raised when the HTTP exchange fails below HTTP semantics.

    This includes connection refusals, DNS and TLS failures, and broken
    reads or writes.

    Attributes:
        cause: The underlying transport exception.
    """

    def __init__(
        self,
        message: str = "Failed to reach the Nuxeo server",
        *,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the transport error.

        Args:
            message: Human-readable error description.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


class NuxeoHTTPError(NuxeoError):
    """Raised for a 4xx/5xx answer that is not a Nuxeo exception envelope.

    Attributes:
        status: The HTTP status code.
        body: A snippet of the response body.
    """

    SNIPPET_LENGTH = 512

    def __init__(
        self,
        status: int,
        body: str = "",
        *,
        response: httpx.Response | None = None,
    ) -> None:
        """Initialize the HTTP error.

        Args:
            status: The HTTP status code.
            body: Response body text, truncated to ``SNIPPET_LENGTH``.
            response: The HTTP response that caused this error.
        """
        self.status = status
        self.body = body[: self.SNIPPET_LENGTH]
        message = f"HTTP {status}"
        if self.body:
            message = f"{message}: {self.body}"
        super().__init__(message, response=response)

    def __str__(self) -> str:
        """Return the status line and body snippet."""
        return self.message


class NuxeoServerError(NuxeoError):
    """Raised when the server answers with its typed exception envelope.

    Attributes:
        status: Status carried by the envelope.
        stacktrace: Server-side stack trace, often empty.
    """

    def __init__(
        self,
        status: int,
        message: str,
        stacktrace: str = "",
        *,
        response: httpx.Response | None = None,
    ) -> None:
        """Initialize the server error.

        Args:
            status: Status carried by the envelope.
            message: The envelope message.
            stacktrace: The envelope stack trace.
            response: The HTTP response that caused this error.
        """
        super().__init__(message, response=response)
        self.status = status
        self.stacktrace = stacktrace

    def __str__(self) -> str:
        """Return the Nuxeo exception summary."""
        return f"Nuxeo Exception: {self.status} - {self.message}"


class NuxeoDecodeError(NuxeoError):
    """Raised when a payload does not match the expected shape.

    This covers responses that cannot be decoded into the requested entity
    and Field accessors asked for an incompatible type.
    """


class NuxeoUsageError(NuxeoError):
    """Raised when the caller breaks an SDK contract.

    Examples are reading a blob stream twice or uploading the same chunk
    index twice in one chunked upload.
    """


class NuxeoCancelledError(NuxeoError):
    """Raised when a request deadline expires before the server answers."""

    def __init__(
        self,
        message: str = "Request deadline exceeded",
        *,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the cancellation error.

        Args:
            message: Human-readable error description.
            cause: The underlying timeout exception.
        """
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause
