"""Errors raised while loading client settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.exceptions import NuxeoConfigError


if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from pydantic import ValidationError


__all__ = [
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
]


class ConfigurationError(NuxeoConfigError):
    """Settings could not be loaded.

    Catching :class:`NuxeoConfigError` also catches these, together with
    invalid client arguments.
    """


class ConfigurationFileNotFoundError(ConfigurationError):
    """No settings file exists where one was required.

    Attributes:
        path: The explicitly requested file, if any.
        searched_paths: Default locations that were tried.
    """

    def __init__(
        self,
        path: str | None = None,
        searched_paths: Sequence[str | Path] = (),
    ) -> None:
        self.path = path
        self.searched_paths = [str(p) for p in searched_paths]
        if path:
            detail = path
        elif self.searched_paths:
            detail = "none of " + ", ".join(self.searched_paths)
        else:
            detail = "no path given"
        super().__init__(f"Configuration file not found: {detail}")


class ConfigurationValidationError(ConfigurationError):
    """Settings were found but hold invalid values.

    Attributes:
        errors: Pydantic error details, one per offending value.
    """

    def __init__(
        self,
        message: str,
        errors: list[dict[str, object]] | None = None,
    ) -> None:
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_validation_error(
        cls,
        exc: ValidationError,
        source: Path | None = None,
    ) -> ConfigurationValidationError:
        """Summarise a pydantic error as ``section.key: reason`` lines."""
        errors = [dict(error) for error in exc.errors()]
        lines = []
        for error in errors:
            location = ".".join(str(part) for part in error["loc"]) or "<root>"
            lines.append(f"{location}: {error['msg']}")
        where = f" in {source}" if source is not None else ""
        message = f"Invalid configuration{where}:\n  " + "\n  ".join(lines)
        return cls(message, errors=errors)
