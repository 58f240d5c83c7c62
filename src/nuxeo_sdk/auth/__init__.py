"""Request authenticators."""

from __future__ import annotations

from nuxeo_sdk.auth.base import (
    AUTHORIZATION_HEADER,
    TOKEN_HEADER,
    Authenticator,
    BasicAuthenticator,
    BearerAuthenticator,
    NoAuthenticator,
    TokenAuthenticator,
)
from nuxeo_sdk.auth.oauth2 import (
    DEFAULT_STATE,
    OAuth2Authenticator,
    OAuth2Mode,
    OAuth2Token,
)


__all__ = [
    "AUTHORIZATION_HEADER",
    "DEFAULT_STATE",
    "TOKEN_HEADER",
    "Authenticator",
    "BasicAuthenticator",
    "BearerAuthenticator",
    "NoAuthenticator",
    "OAuth2Authenticator",
    "OAuth2Mode",
    "OAuth2Token",
    "TokenAuthenticator",
]
