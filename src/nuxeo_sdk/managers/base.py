"""Shared plumbing of the API managers."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog


if TYPE_CHECKING:
    from nuxeo_sdk.client import NuxeoClient


__all__ = ["Manager", "quote_path", "quote_segment", "quote_xpath"]


def quote_segment(value: str) -> str:
    """Percent-encode ``value`` as a single path segment."""
    return quote(value, safe="")


def quote_path(path: str) -> str:
    """Percent-encode a document path, keeping its slashes."""
    if not path.startswith("/"):
        path = "/" + path
    return quote(path, safe="/")


def quote_xpath(xpath: str) -> str:
    """Percent-encode a property xpath such as ``files:files/0/file``."""
    return quote(xpath, safe="/:")


class Manager:
    """Base class of the managers exposed by :class:`NuxeoClient`.

    Managers hold no state besides the client; they are cheap to create.
    """

    def __init__(self, client: NuxeoClient) -> None:
        self._client = client
        self._logger = structlog.get_logger(__name__)
