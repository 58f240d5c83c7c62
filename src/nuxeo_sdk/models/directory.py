"""Directory (vocabulary) entities."""

from __future__ import annotations

import pydantic

from nuxeo_sdk.exceptions import NuxeoDecodeError
from nuxeo_sdk.models.base import Entities, Entity, PaginableEntities
from nuxeo_sdk.models.field import Field


__all__ = [
    "Directories",
    "Directory",
    "DirectoryEntries",
    "DirectoryEntry",
]


class Directory(Entity):
    """A directory definition."""

    entity_type: str = pydantic.Field(default="directory", alias="entity-type")
    name: str
    schema_name: str | None = pydantic.Field(default=None, alias="schema")
    id_field: str | None = None
    parent: str | None = None


class DirectoryEntry(Entity):
    """One row of a directory.

    Vocabulary entries carry ``id``, ``label``, ``ordering`` and
    ``obsolete`` properties; other directories define their own.
    """

    entity_type: str = pydantic.Field(default="directoryEntry", alias="entity-type")
    directory_name: str | None = None
    id: str | None = None
    properties: dict[str, Field] = {}

    @property
    def entry_id(self) -> str:
        """The ``id`` property, falling back to the entry id."""
        field = self.properties.get("id")
        value = field.as_str() if field is not None else None
        return value or self.id or ""

    @property
    def label(self) -> str:
        field = self.properties.get("label")
        return (field.as_str() if field is not None else None) or ""

    @property
    def ordering(self) -> int:
        field = self.properties.get("ordering")
        return (field.as_int() if field is not None else None) or 0

    @property
    def obsolete(self) -> bool:
        """Whether the entry is hidden from pickers.

        Older servers send ``0``/``1`` instead of a boolean.
        """
        field = self.properties.get("obsolete")
        if field is None or field.is_null():
            return False
        try:
            return bool(field.as_bool())
        except NuxeoDecodeError:
            return bool(field.as_int())

    def to_payload(self) -> dict[str, object]:
        """Return the body used to create or update this entry."""
        return {
            "entity-type": "directoryEntry",
            "directoryName": self.directory_name,
            "properties": {key: value.value for key, value in self.properties.items()},
        }


Directories = Entities[Directory]
DirectoryEntries = PaginableEntities[DirectoryEntry]
