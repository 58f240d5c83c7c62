"""Document entities and property value shapes."""

from __future__ import annotations

from typing import Any

import pydantic

from nuxeo_sdk.models.base import Entity, NuxeoBaseModel, PaginableEntities
from nuxeo_sdk.models.field import Field
from nuxeo_sdk.models.timestamp import ISO8601Time


__all__ = [
    "BlobProperty",
    "Document",
    "DocumentSchema",
    "Documents",
    "UploadInfo",
]


FACET_FOLDERISH = "Folderish"
FACET_COLLECTION = "Collection"
FACET_NOT_COLLECTION_MEMBER = "NotCollectionMember"


class DocumentSchema(NuxeoBaseModel):
    """A schema reference as listed on a document."""

    name: str
    prefix: str = ""


class Document(Entity):
    """A node of the document repository.

    Properties are kept as :class:`Field` values keyed by their prefixed
    name (``dc:title``). Change them with :meth:`set_property` and send the
    document back with the repository ``update_document`` call.
    """

    entity_type: str = pydantic.Field(default="document", alias="entity-type")
    repository: str | None = None
    uid: str | None = None
    path: str | None = None
    type: str | None = None
    name: str | None = None
    state: str | None = None
    parent_ref: str | None = None
    is_checked_out: bool = False
    is_record: bool = False
    retain_until: ISO8601Time | None = None
    has_legal_hold: bool = False
    is_under_retention_or_legal_hold: bool = False
    is_version: bool = False
    is_proxy: bool = False
    change_token: str | None = None
    is_trashed: bool = False
    title: str | None = None
    last_modified: ISO8601Time | None = None
    properties: dict[str, Field] = {}
    facets: list[str] = []
    schemas: list[DocumentSchema] = []

    def get_property(self, name: str) -> Field | None:
        """Return a property value, or None if the document lacks it."""
        return self.properties.get(name)

    def set_property(self, name: str, value: object) -> None:
        """Set a property from any Python value accepted by :meth:`Field.of`."""
        self.properties[name] = Field.of(value)

    def has_facet(self, facet: str) -> bool:
        """Return True if the document carries ``facet``."""
        return facet in self.facets

    def is_folder(self) -> bool:
        """Return True for folderish documents."""
        return self.has_facet(FACET_FOLDERISH)

    def is_collection(self) -> bool:
        """Return True for collection documents."""
        return self.has_facet(FACET_COLLECTION)

    def is_collectable(self) -> bool:
        """Return True if the document may be added to a collection."""
        return not self.has_facet(FACET_NOT_COLLECTION_MEMBER)

    def to_create_payload(self) -> dict[str, Any]:
        """Return the body used to create this document under a parent."""
        payload: dict[str, Any] = {
            "entity-type": "document",
            "name": self.name,
            "type": self.type,
        }
        if self.properties:
            payload["properties"] = {
                key: value.value for key, value in self.properties.items()
            }
        return {key: value for key, value in payload.items() if value is not None}

    def to_update_payload(self) -> dict[str, Any]:
        """Return the body used to update this document in place."""
        payload: dict[str, Any] = {
            "entity-type": "document",
            "uid": self.uid,
            "type": self.type,
            "changeToken": self.change_token,
            "properties": {key: value.value for key, value in self.properties.items()},
        }
        return {key: value for key, value in payload.items() if value is not None}


Documents = PaginableEntities[Document]


class BlobProperty(NuxeoBaseModel):
    """Blob metadata as found in a document property (``file:content``)."""

    name: str | None = None
    mime_type: str | None = pydantic.Field(default=None, alias="mime-type")
    encoding: str | None = None
    digest_algorithm: str | None = None
    digest: str | None = None
    length: int | None = None
    data: str | None = None


class UploadInfo(NuxeoBaseModel):
    """Reference to a batch-uploaded file, usable as a blob property value.

    Example:
        ```python
        doc.set_property("file:content", UploadInfo(batch_id=batch_id, file_idx="0"))
        ```
    """

    batch_id: str = pydantic.Field(alias="upload-batch")
    file_idx: str = pydantic.Field(alias="upload-fileId")

    @pydantic.field_validator("file_idx", mode="before")
    @classmethod
    def stringify_file_idx(cls, value: object) -> object:
        """Accept integer file indexes."""
        if isinstance(value, int):
            return str(value)
        return value
