"""Authenticators producing the credentials headers of each request.

An authenticator is asked for headers once per outgoing request (and again
on every redirect hop). It must be safe to call concurrently and should not
perform network I/O; only OAuth2 token acquisition does.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    import httpx


__all__ = [
    "AUTHORIZATION_HEADER",
    "TOKEN_HEADER",
    "Authenticator",
    "BasicAuthenticator",
    "BearerAuthenticator",
    "NoAuthenticator",
    "TokenAuthenticator",
]


AUTHORIZATION_HEADER = "Authorization"
TOKEN_HEADER = "X-Authentication-Token"  # noqa: S105


class Authenticator(ABC):
    """Base class for request authenticators.

    Subclass it to plug a custom scheme into the client.
    """

    @abstractmethod
    async def get_auth_headers(self, request: httpx.Request) -> dict[str, str]:
        """Return the headers authenticating ``request``.

        Args:
            request: The outgoing request, fully built except for credentials.

        Returns:
            Header names and values; an empty mapping sends no credentials.

        Raises:
            NuxeoAuthError: If credentials cannot be produced.
        """

    async def handle_unauthorized(self, request: httpx.Request) -> bool:
        """React to a 401 answer for ``request``.

        Args:
            request: The request the server rejected.

        Returns:
            True if credentials were renewed and the request may be replayed.
        """
        del request
        return False

    async def aclose(self) -> None:  # noqa: B027
        """Release resources held by the authenticator."""


class NoAuthenticator(Authenticator):
    """Sends no credentials."""

    async def get_auth_headers(self, request: httpx.Request) -> dict[str, str]:
        del request
        return {}


class BasicAuthenticator(Authenticator):
    """HTTP basic authentication with a username and password."""

    def __init__(self, username: str, password: str) -> None:
        self.username = username
        self._password = password

    async def get_auth_headers(self, request: httpx.Request) -> dict[str, str]:
        del request
        if not self.username or not self._password:
            return {}
        credentials = f"{self.username}:{self._password}".encode()
        encoded = base64.b64encode(credentials).decode("ascii")
        return {AUTHORIZATION_HEADER: f"Basic {encoded}"}

    def __repr__(self) -> str:
        return f"BasicAuthenticator(username={self.username!r})"


class BearerAuthenticator(Authenticator):
    """Sends an opaque bearer token."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_auth_headers(self, request: httpx.Request) -> dict[str, str]:
        del request
        if not self._token:
            return {}
        return {AUTHORIZATION_HEADER: f"Bearer {self._token}"}


class TokenAuthenticator(Authenticator):
    """Sends a Nuxeo authentication token in ``X-Authentication-Token``."""

    def __init__(self, token: str) -> None:
        self._token = token

    async def get_auth_headers(self, request: httpx.Request) -> dict[str, str]:
        del request
        if not self._token:
            return {}
        return {TOKEN_HEADER: self._token}
