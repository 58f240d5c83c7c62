"""Server data model: schemas, facets and document types.

Configuration payloads describe a field type either as a bare string
(``"string"``, ``"long[]"``) or as ``{"type": "complex", "fields": {...}}``.
Both decode to :class:`SchemaField`, with the ``[]`` suffix turned into
``is_array``. The ``@prefix`` pseudo-field found in schema listings carries
the schema prefix and is lifted onto :attr:`Schema.prefix`.
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import model_validator

from nuxeo_sdk.models.base import Entity, NuxeoBaseModel


__all__ = [
    "DocType",
    "DocTypes",
    "Facet",
    "Schema",
    "SchemaField",
]


PREFIX_KEY = "@prefix"
ARRAY_SUFFIX = "[]"


class SchemaField(NuxeoBaseModel):
    """Type description of one schema field."""

    type: str
    is_array: bool = False
    fields: dict[str, SchemaField] = {}

    @model_validator(mode="before")
    @classmethod
    def from_wire(cls, data: Any) -> Any:  # noqa: ANN401
        """Accept the bare-string shape and strip the array suffix."""
        if isinstance(data, str):
            data = {"type": data}
        if not isinstance(data, dict):
            return data
        type_name = data.get("type")
        if isinstance(type_name, str) and type_name.endswith(ARRAY_SUFFIX):
            data = {
                **data,
                "type": type_name.removesuffix(ARRAY_SUFFIX),
                "isArray": True,
            }
            data.pop("is_array", None)
        return data

    def is_blob(self) -> bool:
        return self.type == "blob"

    def is_boolean(self) -> bool:
        return self.type == "boolean"

    def is_complex(self) -> bool:
        return self.type == "complex"

    def is_date(self) -> bool:
        return self.type == "date"

    def is_long(self) -> bool:
        return self.type == "long"

    def is_double(self) -> bool:
        return self.type == "double"

    def is_string(self) -> bool:
        return self.type == "string"


class Schema(Entity):
    """A named group of fields sharing a property prefix."""

    entity_type: str = pydantic.Field(default="schema", alias="entity-type")
    name: str
    prefix: str = ""
    fields: dict[str, SchemaField] = {}

    @model_validator(mode="before")
    @classmethod
    def lift_prefix(cls, data: Any) -> Any:  # noqa: ANN401
        """Move ``@prefix`` from the payload or its fields onto ``prefix``."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        prefix = data.pop(PREFIX_KEY, None)
        fields = data.get("fields")
        if isinstance(fields, dict) and PREFIX_KEY in fields:
            fields = dict(fields)
            prefix_field = fields.pop(PREFIX_KEY)
            data["fields"] = fields
            if prefix is None:
                prefix = (
                    prefix_field.get("type")
                    if isinstance(prefix_field, dict)
                    else prefix_field
                )
        if prefix and not data.get("prefix"):
            data["prefix"] = prefix
        return data


def _schema_refs(value: Any) -> Any:  # noqa: ANN401
    if isinstance(value, list):
        return [{"name": item} if isinstance(item, str) else item for item in value]
    return value


class Facet(Entity):
    """A capability tag contributing schemas to document types."""

    entity_type: str = pydantic.Field(default="facet", alias="entity-type")
    name: str
    schemas: list[Schema] = []

    @pydantic.field_validator("schemas", mode="before")
    @classmethod
    def coerce_schema_names(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept schema names in place of schema objects."""
        return _schema_refs(value)


class DocType(Entity):
    """A document type with its parent, facets and schemas.

    A single-type fetch returns full schemas; the all-types listing returns
    schema names, which :class:`DocTypes` resolves against its registry.
    """

    entity_type: str = pydantic.Field(default="docType", alias="entity-type")
    name: str
    parent: str | None = None
    facets: list[str] = []
    schemas: list[Schema] = []

    @pydantic.field_validator("schemas", mode="before")
    @classmethod
    def coerce_schema_names(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept schema names in place of schema objects."""
        return _schema_refs(value)


class DocTypes(NuxeoBaseModel):
    """Every document type of the server with the shared schema registry."""

    doc_types: dict[str, DocType] = {}
    schemas: dict[str, Schema] = {}

    @model_validator(mode="before")
    @classmethod
    def resolve_schemas(cls, data: Any) -> Any:  # noqa: ANN401
        """Name every schema and attach resolved schemas to each type."""
        if not isinstance(data, dict):
            return data
        raw_types = data.get("docTypes", data.get("doctypes", data.get("doc_types")))
        raw_schemas = data.get("schemas") or {}
        if not isinstance(raw_types, dict) or not isinstance(raw_schemas, dict):
            return data

        schemas: dict[str, Any] = {}
        for name, fields in raw_schemas.items():
            if isinstance(fields, Schema):
                schemas[name] = fields
            elif isinstance(fields, dict) and "fields" in fields:
                schemas[name] = Schema.model_validate({"name": name, **fields})
            else:
                schemas[name] = Schema.model_validate({"name": name, "fields": fields})

        doc_types: dict[str, Any] = {}
        for name, raw in raw_types.items():
            if isinstance(raw, DocType):
                doc_types[name] = raw
                continue
            resolved = [
                schemas[schema]
                for schema in raw.get("schemas", [])
                if isinstance(schema, str) and schema in schemas
            ]
            doc_types[name] = DocType(
                name=name,
                parent=raw.get("parent"),
                facets=raw.get("facets", []),
                schemas=resolved,
            )
        return {"docTypes": doc_types, "schemas": schemas}

    def get_schema(self, name: str) -> Schema | None:
        """Return the schema called ``name``."""
        return self.schemas.get(name)
