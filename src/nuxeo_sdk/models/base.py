"""Base models shared by all Nuxeo entities."""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from nuxeo_sdk.models.field import Field


__all__ = [
    "Entities",
    "Entity",
    "NuxeoBaseModel",
    "PaginableEntities",
]


class NuxeoBaseModel(BaseModel):
    """Base model with common configuration for all Nuxeo payloads.

    Attribute names are snake_case in Python and camelCase on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",  # Ignore unknown fields from API
    )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready wire form, without unset optional values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Entity(NuxeoBaseModel):
    """A typed JSON envelope discriminated by ``entity-type``."""

    entity_type: str = pydantic.Field(default="", alias="entity-type")
    context_parameters: dict[str, Field] | None = None


class Entities[T](Entity):
    """A plain, non-paginated list of entities."""

    entries: list[T] = []


class PaginableEntities[T](Entities[T]):
    """One page of a server-side pageable result.

    The page is an immutable snapshot; fetching the next page is a new call
    with updated pagination options.
    """

    is_paginable: bool = False
    results_count: int = 0
    page_size: int = 0
    max_page_size: int = 0
    results_count_limit: int = 0
    current_page_size: int = 0
    current_page_index: int = 0
    current_page_offset: int = 0
    number_of_pages: int = 0
    is_previous_page_available: bool = False
    is_next_page_available: bool = False
    is_last_page_available: bool = False
    is_sortable: bool = False
    has_error: bool = False
    error_message: str | None = None
    page_index: int = 0
    page_count: int = 0
