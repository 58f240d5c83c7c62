"""OAuth2 authentication against the Nuxeo authorization server.

Three modes are supported, chosen from the constructor arguments:

- JWT: a pre-issued token is sent as a static bearer token.
- Client credentials: without a redirect URI, the authenticator performs the
  client-credentials grant on first use and again whenever the token expires.
- Authorization code: with a redirect URI, the authenticator stays unarmed
  (no credentials) until :meth:`OAuth2Authenticator.exchange` trades an
  authorization code for a token; expired tokens are then silently refreshed
  with the refresh token.

Token acquisition and refresh are single-flight: concurrent requests wait
for the one grant in progress instead of starting their own.
"""

from __future__ import annotations

import asyncio
import time
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from nuxeo_sdk.auth.base import AUTHORIZATION_HEADER, Authenticator
from nuxeo_sdk.exceptions import NuxeoAuthError, NuxeoConfigError


if TYPE_CHECKING:
    from collections.abc import Sequence


__all__ = [
    "DEFAULT_STATE",
    "OAuth2Authenticator",
    "OAuth2Mode",
    "OAuth2Token",
]


TOKEN_PATH = "/oauth2/token"  # noqa: S105
AUTHORIZE_PATH = "/oauth2/authorize"
DEFAULT_STATE = "nuxeo-python-sdk-state"
EXPIRY_LEEWAY = 10.0  # seconds


class OAuth2Mode(StrEnum):
    """How the authenticator obtains its access token."""

    JWT = "jwt"
    CLIENT_CREDENTIALS = "client_credentials"
    AUTHORIZATION_CODE = "authorization_code"


class OAuth2Token(BaseModel):
    """An access token as issued by the token endpoint."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "bearer"
    refresh_token: str | None = None
    expires_in: float | None = None
    scope: str | None = None
    obtained_at: float = 0.0

    @property
    def expires_at(self) -> float | None:
        """Monotonic clock time at which the token expires, if it does."""
        if self.expires_in is None:
            return None
        return self.obtained_at + self.expires_in

    def is_expired(self, leeway: float = EXPIRY_LEEWAY) -> bool:
        """Return True if the token expires within ``leeway`` seconds."""
        expires_at = self.expires_at
        return expires_at is not None and time.monotonic() + leeway >= expires_at


class OAuth2Authenticator(Authenticator):
    """Bearer authentication backed by an OAuth2 token source.

    Example:
        ```python
        # Client credentials
        auth = OAuth2Authenticator(base_url, client_id="app", client_secret="s3cr3t")

        # Authorization code
        auth = OAuth2Authenticator(
            base_url,
            client_id="app",
            client_secret="s3cr3t",
            redirect_uri="https://app.example.com/callback",
        )
        print(auth.authorization_url())
        await auth.exchange(code_from_callback)
        ```

    Attributes:
        mode: The token source in use.
        token_url: The token endpoint.
    """

    def __init__(  # noqa: PLR0913
        self,
        base_url: str,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        redirect_uri: str | None = None,
        jwt_token: str | None = None,
        scopes: Sequence[str] = (),
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the authenticator.

        Args:
            base_url: Server base URL, ending in ``/nuxeo``.
            client_id: OAuth2 client id.
            client_secret: OAuth2 client secret.
            redirect_uri: Callback URI; selects the authorization-code mode.
            jwt_token: Pre-issued token; selects the JWT mode.
            scopes: Scopes requested with grants.
            timeout: Timeout for token endpoint calls, in seconds.
            transport: Optional custom transport for testing.

        Raises:
            NuxeoConfigError: If neither a JWT nor a client id and secret
                are given.
        """
        if not jwt_token and not (client_id and client_secret):
            msg = "OAuth2 needs a JWT token or a client id and secret"
            raise NuxeoConfigError(msg)

        base_url = base_url.rstrip("/")
        self.token_url = base_url + TOKEN_PATH
        self.authorize_url = base_url + AUTHORIZE_PATH
        self.client_id = client_id
        self._client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = tuple(scopes)
        self._timeout = timeout
        self._transport = transport
        self._lock = asyncio.Lock()
        self._logger = structlog.get_logger(__name__)

        self._token: OAuth2Token | None = None
        if jwt_token:
            self.mode = OAuth2Mode.JWT
            self._token = OAuth2Token(access_token=jwt_token)
        elif redirect_uri:
            self.mode = OAuth2Mode.AUTHORIZATION_CODE
        else:
            self.mode = OAuth2Mode.CLIENT_CREDENTIALS

    @property
    def token(self) -> OAuth2Token | None:
        """The current token, if one was obtained."""
        return self._token

    @property
    def is_armed(self) -> bool:
        """Whether the authenticator can produce credentials without a code."""
        return self.mode != OAuth2Mode.AUTHORIZATION_CODE or self._token is not None

    # -------------------------------------------------------------------------
    # Authorization-code flow
    # -------------------------------------------------------------------------

    def authorization_url(self, state: str = DEFAULT_STATE) -> str:
        """Build the URL where the user grants access to the client.

        Args:
            state: Opaque value echoed back to the redirect URI.

        Returns:
            The authorization URL.
        """
        params: dict[str, str] = {
            "response_type": "code",
            "client_id": self.client_id or "",
            "state": state,
            "access_type": "offline",
        }
        if self.redirect_uri:
            params["redirect_uri"] = self.redirect_uri
        if self.scopes:
            params["scope"] = " ".join(self.scopes)
        return str(httpx.URL(self.authorize_url, params=params))

    async def exchange(self, code: str) -> OAuth2Token:
        """Trade an authorization code for a token and arm the authenticator.

        Args:
            code: The code received on the redirect URI.

        Returns:
            The issued token.

        Raises:
            NuxeoAuthError: If the token endpoint rejects the code. The
                authenticator keeps its previous state.
        """
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri or "",
        }
        async with self._lock:
            self._token = await self._request_token(data)
        self._logger.info("oauth2_code_exchanged", mode=str(self.mode))
        return self._token

    # -------------------------------------------------------------------------
    # Authenticator
    # -------------------------------------------------------------------------

    async def get_auth_headers(self, request: httpx.Request) -> dict[str, str]:
        del request
        token = await self._current_token()
        if token is None:
            return {}
        return {AUTHORIZATION_HEADER: f"Bearer {token.access_token}"}

    async def handle_unauthorized(self, request: httpx.Request) -> bool:
        """Renew the token after a 401, unless another caller already did."""
        if self.mode == OAuth2Mode.JWT:
            return False
        rejected = request.headers.get(AUTHORIZATION_HEADER)
        async with self._lock:
            current = self._token
            if current is not None and rejected != f"Bearer {current.access_token}":
                return True
            if self.mode == OAuth2Mode.AUTHORIZATION_CODE and (
                current is None or current.refresh_token is None
            ):
                return False
            self._token = await self._renew(current)
        return True

    async def _current_token(self) -> OAuth2Token | None:
        token = self._token
        if token is not None and not token.is_expired():
            return token
        if self.mode == OAuth2Mode.JWT:
            return token
        if self.mode == OAuth2Mode.AUTHORIZATION_CODE and token is None:
            return None

        async with self._lock:
            # Another caller may have renewed while we waited.
            token = self._token
            if token is not None and not token.is_expired():
                return token
            self._token = await self._renew(token)
            return self._token

    async def _renew(self, token: OAuth2Token | None) -> OAuth2Token:
        if token is not None and token.refresh_token:
            return await self._request_token(
                {"grant_type": "refresh_token", "refresh_token": token.refresh_token}
            )
        if self.mode == OAuth2Mode.CLIENT_CREDENTIALS:
            return await self._request_token({"grant_type": "client_credentials"})
        msg = "OAuth2 token expired and no refresh token is available"
        raise NuxeoAuthError(msg)

    async def _request_token(self, data: dict[str, str]) -> OAuth2Token:
        form: dict[str, Any] = {
            **data,
            "client_id": self.client_id or "",
            "client_secret": self._client_secret or "",
        }
        if self.scopes:
            form["scope"] = " ".join(self.scopes)
        log = self._logger.bind(grant_type=data["grant_type"])

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.token_url,
                    data=form,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as exc:
            log.warning("oauth2_token_request_failed", error=str(exc))
            msg = f"OAuth2 token request failed: {exc}"
            raise NuxeoAuthError(msg, cause=exc) from exc

        if not response.is_success:
            log.warning("oauth2_grant_rejected", status_code=response.status_code)
            msg = f"OAuth2 {data['grant_type']} grant rejected"
            raise NuxeoAuthError(msg, response=response)

        try:
            token = OAuth2Token.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            msg = "OAuth2 token endpoint returned an invalid token"
            raise NuxeoAuthError(msg, cause=exc, response=response) from exc

        token.obtained_at = time.monotonic()
        log.debug("oauth2_token_acquired", expires_in=token.expires_in)
        return token
