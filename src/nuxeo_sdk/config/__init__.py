"""Configuration for nuxeo-sdk clients.

Settings come from constructor arguments, ``NUXEO_*`` environment variables
and an optional YAML file supporting ${VAR} and ${VAR:-default}
interpolation.

Example:
    >>> from nuxeo_sdk.config import load_settings
    >>> settings = load_settings("nuxeo.yaml")
    >>> settings.auth.method
    <AuthMethod.BASIC: 'basic'>
"""

from __future__ import annotations

from nuxeo_sdk.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from nuxeo_sdk.config.schema import (
    AuthConfig,
    AuthMethod,
    ConfigBaseModel,
    LoggingConfig,
    OAuth2Config,
    ServerConfig,
)
from nuxeo_sdk.config.settings import (
    Settings,
    clear_settings_cache,
    find_config_file,
    get_settings,
    interpolate_env,
    load_settings,
)


__all__ = [
    "AuthConfig",
    "AuthMethod",
    "ConfigBaseModel",
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
    "LoggingConfig",
    "OAuth2Config",
    "ServerConfig",
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "interpolate_env",
    "load_settings",
]
