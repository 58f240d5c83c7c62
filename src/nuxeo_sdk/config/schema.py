"""Configuration schema models for nuxeo-sdk.

These models validate the sections of :class:`nuxeo_sdk.config.Settings`,
whether they come from a YAML file, environment variables or code.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path  # noqa: TC003 - needed at runtime for Pydantic
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from nuxeo_sdk.observability.logging import LogFormat, LogLevel


__all__ = [
    "AuthConfig",
    "AuthMethod",
    "ConfigBaseModel",
    "LoggingConfig",
    "OAuth2Config",
    "ServerConfig",
]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class AuthMethod(StrEnum):
    """How the client authenticates.

    Attributes:
        NONE: No credentials.
        BASIC: HTTP basic with username and password.
        BEARER: Opaque bearer token.
        TOKEN: Nuxeo authentication token (``X-Authentication-Token``).
        OAUTH2: OAuth2 (JWT, client credentials or authorization code).
    """

    NONE = "none"
    BASIC = "basic"
    BEARER = "bearer"
    TOKEN = "token"  # noqa: S105
    OAUTH2 = "oauth2"


# ---------------------------------------------------------------------------
# Base Configuration Model
# ---------------------------------------------------------------------------


class ConfigBaseModel(BaseModel):
    """Base model for all configuration sections.

    Uses stricter settings than API models to catch configuration typos:
    - extra="forbid" raises errors for unknown fields
    - validate_default=True ensures defaults are validated
    """

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )


# ---------------------------------------------------------------------------
# Server Connection
# ---------------------------------------------------------------------------


class ServerConfig(ConfigBaseModel):
    """Nuxeo server connection configuration.

    Attributes:
        url: Base URL of the server, usually ending in ``/nuxeo``.
        repository: Default repository name.
        timeout: Default request timeout in seconds.
        connect_timeout: Connection timeout in seconds.
        max_retries: Transport-level connection retries.
        headers: Extra headers sent with every request.
    """

    url: str = Field(
        default="http://localhost:8080/nuxeo",
        description="Base URL of the Nuxeo server",
    )
    repository: str = Field(default="default", min_length=1)
    timeout: Annotated[float, Field(gt=0, description="Request timeout")] = 30.0
    connect_timeout: Annotated[float, Field(gt=0)] = 10.0
    max_retries: Annotated[int, Field(ge=0, le=10)] = 1
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slash from URL to avoid double slashes."""
        if not v:
            msg = "server url must not be empty"
            raise ValueError(msg)
        return v.rstrip("/")


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


class OAuth2Config(ConfigBaseModel):
    """OAuth2 client configuration.

    Attributes:
        client_id: OAuth2 client id.
        client_secret: OAuth2 client secret (supports ${VAR} interpolation).
        redirect_uri: Callback URI; selects the authorization-code flow.
        jwt_token: Pre-issued JWT; selects the static token mode.
        scopes: Scopes requested with grants.
    """

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    jwt_token: str | None = None
    scopes: list[str] = Field(default_factory=list)


class AuthConfig(ConfigBaseModel):
    """Authentication configuration.

    ``token`` is used by the bearer and token methods; when empty it is read
    from ``token_file``.

    Attributes:
        method: Authentication method.
        username: Username for basic authentication.
        password: Password for basic authentication.
        token: Bearer or Nuxeo token.
        token_file: File holding the token.
        oauth2: OAuth2 client settings.
    """

    method: AuthMethod = Field(default=AuthMethod.NONE)
    username: str | None = None
    password: str | None = None
    token: str | None = None
    token_file: Path | None = None
    oauth2: OAuth2Config = Field(default_factory=OAuth2Config)

    @model_validator(mode="after")
    def check_credentials(self) -> Self:
        """Ensure the selected method has the credentials it needs.

        Raises:
            ValueError: If a credential required by ``method`` is missing.
        """
        if self.method == AuthMethod.BASIC and not (self.username and self.password):
            msg = "basic authentication needs a username and a password"
            raise ValueError(msg)
        if self.method in {AuthMethod.BEARER, AuthMethod.TOKEN}:
            if not self.token and self.token_file is None:
                msg = f"{self.method} authentication needs a token or token_file"
                raise ValueError(msg)
        if self.method == AuthMethod.OAUTH2:
            oauth2 = self.oauth2
            if not oauth2.jwt_token and not (oauth2.client_id and oauth2.client_secret):
                msg = "oauth2 needs a jwt_token or a client_id and client_secret"
                raise ValueError(msg)
        return self

    def resolve_token(self) -> str | None:
        """Return the token, reading ``token_file`` if the token is empty.

        Raises:
            ValueError: If ``token_file`` is set but does not exist.
        """
        if self.token:
            return self.token
        if self.token_file is None:
            return None
        if not self.token_file.is_file():
            msg = f"Token file not found: {self.token_file}"
            raise ValueError(msg)
        return self.token_file.read_text().strip()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


class LoggingConfig(ConfigBaseModel):
    """Logging configuration.

    Attributes:
        level: Log verbosity level.
        format: Log output format; auto-detected from the TTY when unset.
    """

    level: LogLevel = Field(default=LogLevel.INFO)
    format: LogFormat | None = None

    @field_validator("level", mode="before")
    @classmethod
    def lowercase_level(cls, v: object) -> object:
        """Accept upper-case level names."""
        return v.lower() if isinstance(v, str) else v
