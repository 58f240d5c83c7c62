"""Server capabilities and version."""

from __future__ import annotations

import re
from dataclasses import dataclass

import pydantic

from nuxeo_sdk.models.base import Entity, NuxeoBaseModel


__all__ = [
    "Capabilities",
    "ClusterCapabilities",
    "RepositoryCapabilities",
    "ServerCapabilities",
    "ServerVersion",
]


class ServerCapabilities(NuxeoBaseModel):
    """Distribution details of the server."""

    distribution_name: str = ""
    distribution_version: str = ""
    distribution_server: str = ""


class ClusterCapabilities(NuxeoBaseModel):
    """Cluster membership of the answering node."""

    enabled: bool = False
    node_id: str | None = None


class RepositoryCapabilities(NuxeoBaseModel):
    """Features of one repository."""

    query_blob_keys: bool = False


class Capabilities(Entity):
    """The ``/capabilities`` answer."""

    entity_type: str = pydantic.Field(default="capabilities", alias="entity-type")
    server: ServerCapabilities = ServerCapabilities()
    cluster: ClusterCapabilities = ClusterCapabilities()
    repository: dict[str, RepositoryCapabilities] = {}


_LEADING_NUMBER = re.compile(r"^\d+")


@dataclass(frozen=True, order=True)
class ServerVersion:
    """A comparable ``major.minor.patch`` server version.

    Example:
        >>> ServerVersion.parse("2021.39.3") >= ServerVersion(2021, 0, 0)
        True
    """

    major: int = 0
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, version: str) -> ServerVersion:
        """Parse a distribution version; missing or non-numeric parts read as 0."""
        numbers = []
        for part in version.strip().split(".")[:3]:
            match = _LEADING_NUMBER.match(part)
            numbers.append(int(match.group()) if match else 0)
        return cls(*numbers)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"
