"""Document types, schemas and facets (``/config``)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.managers.base import Manager, quote_segment
from nuxeo_sdk.models import DocType, DocTypes, Facet, Schema


if TYPE_CHECKING:
    from nuxeo_sdk.options import RequestOptions


__all__ = ["DataModelManager"]


class DataModelManager(Manager):
    """Reads the server type system."""

    async def fetch_types(self, *, options: RequestOptions | None = None) -> DocTypes:
        """Fetch all document types with the schemas they reference."""
        return await self._client.request_into(
            "GET", "/config/types", DocTypes, options=options
        )

    async def fetch_type(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> DocType:
        return await self._client.request_into(
            "GET", f"/config/types/{quote_segment(name)}", DocType, options=options
        )

    async def fetch_schemas(
        self,
        *,
        options: RequestOptions | None = None,
    ) -> list[Schema]:
        return await self._client.request_into(
            "GET", "/config/schemas", list[Schema], options=options
        )

    async def fetch_schema(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> Schema:
        return await self._client.request_into(
            "GET", f"/config/schemas/{quote_segment(name)}", Schema, options=options
        )

    async def fetch_facets(
        self,
        *,
        options: RequestOptions | None = None,
    ) -> list[Facet]:
        return await self._client.request_into(
            "GET", "/config/facets", list[Facet], options=options
        )

    async def fetch_facet(
        self,
        name: str,
        *,
        options: RequestOptions | None = None,
    ) -> Facet:
        return await self._client.request_into(
            "GET", f"/config/facets/{quote_segment(name)}", Facet, options=options
        )
