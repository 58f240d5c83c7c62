"""Loading of client settings.

Values are merged from, highest priority first: keyword arguments,
``NUXEO_*`` environment variables (``NUXEO_AUTH__PASSWORD`` sets
``auth.password``), a YAML file, then defaults. Strings in the YAML file may
reference the environment as ``${VAR}`` or ``${VAR:-default}``.

Example:
    >>> from nuxeo_sdk.config import load_settings
    >>> settings = load_settings("nuxeo.yaml")
    >>> settings.server.url
    'https://nuxeo.example.com/nuxeo'
"""

from __future__ import annotations

import os
import re
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

import yaml
from pydantic import ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from nuxeo_sdk.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from nuxeo_sdk.config.schema import AuthConfig, LoggingConfig, ServerConfig


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


__all__ = [
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "interpolate_env",
    "load_settings",
]


# ---------------------------------------------------------------------------
# ${VAR} interpolation
# ---------------------------------------------------------------------------

_REFERENCE = re.compile(r"\$\{(?P<name>[A-Z_][A-Z0-9_]*)(?::-(?P<default>[^}]*))?\}")


def interpolate_env(
    value: Any,  # noqa: ANN401
    env: Mapping[str, str] | None = None,
) -> Any:  # noqa: ANN401
    """Expand ``${VAR}`` and ``${VAR:-default}`` inside nested YAML data.

    A reference to an unset variable without default expands to an empty
    string, which the credential checks then report.

    Args:
        value: Parsed YAML (mappings, lists and scalars).
        env: Variables to read; ``os.environ`` when None.

    Returns:
        A copy of ``value`` with every string expanded.
    """
    env = os.environ if env is None else env

    def expand(match: re.Match[str]) -> str:
        found = env.get(match["name"])
        return found if found is not None else match["default"] or ""

    match value:
        case str():
            return _REFERENCE.sub(expand, value)
        case dict():
            return {key: interpolate_env(item, env) for key, item in value.items()}
        case list():
            return [interpolate_env(item, env) for item in value]
        case _:
            return value


# The YAML file picked by load_settings for the Settings() call in progress
_yaml_path: ContextVar[Path | None] = ContextVar("nuxeo_settings_yaml", default=None)


class _InterpolatingYamlSource(YamlConfigSettingsSource):
    """YAML source expanding environment references before validation."""

    def _read_files(
        self,
        files: Path | str | Sequence[Path | str] | None,
    ) -> dict[str, Any]:
        data = interpolate_env(super()._read_files(files))
        return data if isinstance(data, dict) else {}


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Everything needed to build a :class:`~nuxeo_sdk.NuxeoClient`.

    Attributes:
        server: Where the server is and how long to wait for it.
        auth: Which authenticator to build, with its credentials.
        logging: How :func:`~nuxeo_sdk.observability.configure_logging` is called.

    Example:
        >>> settings = Settings(server={"url": "http://localhost:8080/nuxeo"})
        >>> async with NuxeoClient.from_settings(settings) as client:
        ...     version = await client.server_version()
    """

    model_config = SettingsConfigDict(
        env_prefix="NUXEO_",
        env_nested_delimiter="__",
        yaml_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )

    CONFIG_SEARCH_PATHS: ClassVar[list[Path]] = [
        Path("nuxeo.yaml"),
        Path("nuxeo.yml"),
        Path.home() / ".config" / "nuxeo-sdk" / "config.yaml",
    ]

    server: ServerConfig = ServerConfig()
    auth: AuthConfig = AuthConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="after")
    def load_token_file(self) -> Settings:
        """Fill ``auth.token`` from ``auth.token_file`` when only the file is set.

        Raises:
            ValueError: If the token file does not exist.
        """
        if not self.auth.token and self.auth.token_file is not None:
            self.auth = self.auth.model_copy(
                update={"token": self.auth.resolve_token()},
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Read keyword arguments, then the environment, then the YAML file."""
        sources: list[PydanticBaseSettingsSource] = [init_settings, env_settings]
        yaml_path = _yaml_path.get()
        if yaml_path is not None:
            sources.append(_InterpolatingYamlSource(settings_cls, yaml_file=yaml_path))
        sources.append(file_secret_settings)
        return tuple(sources)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_cached_settings: Settings | None = None


def find_config_file(config_path: Path | str | None = None) -> Path | None:
    """Locate the settings file.

    Args:
        config_path: File to use; when None the default locations are tried
            in order: ``./nuxeo.yaml``, ``./nuxeo.yml``,
            ``~/.config/nuxeo-sdk/config.yaml``.

    Returns:
        The first existing file, or None.
    """
    if config_path is not None:
        candidates = [Path(config_path)]
    else:
        candidates = Settings.CONFIG_SEARCH_PATHS
    return next((path for path in candidates if path.is_file()), None)


def load_settings(
    config_path: Path | str | None = None,
    *,
    require_config_file: bool = False,
) -> Settings:
    """Load, validate and cache the settings.

    Args:
        config_path: YAML file to read; default locations are searched when
            None. A missing file is not an error unless required.
        require_config_file: Fail when no file is found.

    Returns:
        The validated settings, also returned by :func:`get_settings` from
        now on.

    Raises:
        ConfigurationFileNotFoundError: If a file is required and missing.
        ConfigurationValidationError: If any value is invalid.
        ConfigurationError: If the file is not valid YAML.
    """
    global _cached_settings  # noqa: PLW0603

    config_file = find_config_file(config_path)
    if config_file is None and require_config_file:
        raise ConfigurationFileNotFoundError(
            path=str(config_path) if config_path is not None else None,
            searched_paths=Settings.CONFIG_SEARCH_PATHS,
        )

    token = _yaml_path.set(config_file)
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigurationValidationError.from_validation_error(
            exc, config_file
        ) from exc
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {config_file}: {exc}"
        raise ConfigurationError(msg) from exc
    finally:
        _yaml_path.reset(token)

    _cached_settings = settings
    return settings


def get_settings() -> Settings:
    """Return the last loaded settings, loading them on first use."""
    if _cached_settings is None:
        return load_settings()
    return _cached_settings


def clear_settings_cache() -> None:
    """Forget the cached settings."""
    global _cached_settings  # noqa: PLW0603
    _cached_settings = None
