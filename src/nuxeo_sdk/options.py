"""Per-call request options and pagination parameters.

Every option maps to a request header or query parameter; options left at
their zero value contribute nothing to the request.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Self

from nuxeo_sdk.exceptions import NuxeoConfigError


if TYPE_CHECKING:
    from collections.abc import Iterable


__all__ = [
    "HTTP_TIMEOUT_MARGIN",
    "PaginationOptions",
    "RequestOptions",
    "SortOrder",
    "SortedPaginationOptions",
    "VersioningOption",
    "merge_query_params",
]


HTTP_TIMEOUT_MARGIN = 5
"""Seconds added to the transaction timeout to derive the HTTP timeout."""

HEADER_REPOSITORY = "X-NXRepository"
HEADER_VERSIONING = "X-Versioning-Option"
HEADER_TRANSACTION_TIMEOUT = "Nuxeo-Transaction-Timeout"
HEADER_TIMEOUT = "timeout"
HEADER_DEPTH = "depth"
HEADER_SCHEMAS = "properties"


class VersioningOption(StrEnum):
    """Version increment applied when saving a document."""

    NONE = "NONE"
    MINOR = "MINOR"
    MAJOR = "MAJOR"


class SortOrder(StrEnum):
    """Sort direction for sorted listings."""

    ASC = "asc"
    DESC = "desc"


def _frozen_lists(values: Mapping[str, Iterable[str]]) -> dict[str, tuple[str, ...]]:
    return {kind: tuple(items) for kind, items in values.items()}


@dataclass(frozen=True)
class RequestOptions:
    """Header-encoded options for one call.

    Instances are immutable; the ``with_*`` helpers return updated copies,
    so a base set of options can be shared between calls.

    Example:
        ```python
        options = (
            RequestOptions()
            .with_schemas("dublincore", "file")
            .with_enrichers("document", "breadcrumb", "thumbnail")
            .with_transaction_timeout(60)
        )
        doc = await repository.fetch_document_by_path("/ws", options=options)
        ```

    Attributes:
        repository_name: Target repository (``X-NXRepository``).
        headers: Extra headers sent verbatim.
        enrichers: Enrichers per entity kind (``enrichers-<kind>``).
        fetch_properties: Properties to resolve per entity kind
            (``fetch-<kind>``).
        translate_properties: Properties to translate per entity kind
            (``translate-<kind>``).
        schemas: Schemas to include (``properties``).
        depth: Tree depth, sent when positive (``depth``).
        versioning_option: Versioning on save (``X-Versioning-Option``).
        transaction_timeout: Server transaction timeout in seconds
            (``Nuxeo-Transaction-Timeout``).
        http_timeout: Client timeout in seconds (``timeout``). When unset and
            a transaction timeout is given, it is derived as
            ``transaction_timeout + 5``.
    """

    repository_name: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    enrichers: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    fetch_properties: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    translate_properties: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    schemas: tuple[str, ...] = ()
    depth: int = 0
    versioning_option: VersioningOption | None = None
    transaction_timeout: int = 0
    http_timeout: int = 0

    def __post_init__(self) -> None:
        """Validate option values.

        Raises:
            NuxeoConfigError: If a numeric option is negative or a header or
                entity kind is empty.
        """
        for name in ("depth", "transaction_timeout", "http_timeout"):
            if getattr(self, name) < 0:
                msg = f"{name} must not be negative"
                raise NuxeoConfigError(msg)
        for header in self.headers:
            if not header.strip():
                msg = "header names must not be empty"
                raise NuxeoConfigError(msg)
        per_kind = (self.enrichers, self.fetch_properties, self.translate_properties)
        for option in per_kind:
            for kind in option:
                if not kind.strip():
                    msg = "entity kinds must not be empty"
                    raise NuxeoConfigError(msg)
        if self.versioning_option is not None:
            object.__setattr__(
                self,
                "versioning_option",
                VersioningOption(self.versioning_option),
            )
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "enrichers", _frozen_lists(self.enrichers))
        object.__setattr__(
            self, "fetch_properties", _frozen_lists(self.fetch_properties)
        )
        object.__setattr__(
            self, "translate_properties", _frozen_lists(self.translate_properties)
        )
        object.__setattr__(self, "schemas", tuple(self.schemas))

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def with_repository(self, name: str) -> Self:
        return dataclasses.replace(self, repository_name=name)

    def with_header(self, name: str, value: str) -> Self:
        return dataclasses.replace(self, headers={**self.headers, name: value})

    def with_enrichers(self, kind: str, *names: str) -> Self:
        """Request enrichers for entities of ``kind`` (e.g. ``document``)."""
        return dataclasses.replace(self, enrichers={**self.enrichers, kind: names})

    def with_fetch_properties(self, kind: str, *names: str) -> Self:
        return dataclasses.replace(
            self, fetch_properties={**self.fetch_properties, kind: names}
        )

    def with_translate_properties(self, kind: str, *names: str) -> Self:
        return dataclasses.replace(
            self, translate_properties={**self.translate_properties, kind: names}
        )

    def with_schemas(self, *schemas: str) -> Self:
        return dataclasses.replace(self, schemas=schemas)

    def with_depth(self, depth: int) -> Self:
        return dataclasses.replace(self, depth=depth)

    def with_versioning(self, option: VersioningOption | str) -> Self:
        return dataclasses.replace(self, versioning_option=VersioningOption(option))

    def with_transaction_timeout(self, seconds: int) -> Self:
        return dataclasses.replace(self, transaction_timeout=seconds)

    def with_http_timeout(self, seconds: int) -> Self:
        return dataclasses.replace(self, http_timeout=seconds)

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    @property
    def effective_http_timeout(self) -> int:
        """HTTP timeout in seconds, derived from the transaction timeout if unset.

        Returns:
            The timeout, or 0 when neither timeout is set.
        """
        if self.http_timeout > 0:
            return self.http_timeout
        if self.transaction_timeout > 0:
            return self.transaction_timeout + HTTP_TIMEOUT_MARGIN
        return 0

    def to_headers(self) -> dict[str, str]:
        """Encode the options as request headers."""
        headers: dict[str, str] = {}
        if self.repository_name:
            headers[HEADER_REPOSITORY] = self.repository_name
        headers.update(self.headers)
        for prefix, option in (
            ("enrichers", self.enrichers),
            ("fetch", self.fetch_properties),
            ("translate", self.translate_properties),
        ):
            for kind, values in option.items():
                if values:
                    headers[f"{prefix}-{kind}"] = ",".join(values)
        if self.schemas:
            headers[HEADER_SCHEMAS] = ",".join(self.schemas)
        if self.depth > 0:
            headers[HEADER_DEPTH] = str(self.depth)
        if self.versioning_option is not None:
            headers[HEADER_VERSIONING] = self.versioning_option.value
        if self.transaction_timeout > 0:
            headers[HEADER_TRANSACTION_TIMEOUT] = str(self.transaction_timeout)
        if timeout := self.effective_http_timeout:
            headers[HEADER_TIMEOUT] = str(timeout)
        return headers


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaginationOptions:
    """Page selection for paginated listings.

    Attributes:
        current_page_index: Zero-based page to fetch; omitted when None.
        page_size: Entries per page; omitted when 0 (server default).
    """

    current_page_index: int | None = None
    page_size: int = 0

    def to_params(self) -> list[tuple[str, str]]:
        """Encode as query parameters."""
        params: list[tuple[str, str]] = []
        if self.current_page_index is not None and self.current_page_index > -1:
            params.append(("currentPageIndex", str(self.current_page_index)))
        if self.page_size != 0:
            params.append(("pageSize", str(self.page_size)))
        return params


@dataclass(frozen=True)
class SortedPaginationOptions(PaginationOptions):
    """Page selection with sorting, for directory listings.

    Attributes:
        max_results: Upper bound on entries; omitted when 0.
        sort_by: Comma-separated sort fields.
        sort_order: Comma-separated ``asc``/``desc`` per sort field.
    """

    max_results: int = 0
    sort_by: str | None = None
    sort_order: SortOrder | str | None = None

    def to_params(self) -> list[tuple[str, str]]:
        params = super().to_params()
        if self.max_results > 0:
            params.append(("maxResults", str(self.max_results)))
        if self.sort_by:
            params.append(("sortBy", self.sort_by))
        if self.sort_order:
            params.append(("sortOrder", str(self.sort_order)))
        return params


type QuerySource = (
    Mapping[str, object] | list[tuple[str, str]] | PaginationOptions | None
)


def merge_query_params(*sources: QuerySource) -> list[tuple[str, str]]:
    """Combine query parameters, keeping repeated keys.

    ``None`` values in mappings are dropped and sequence values become
    repeated parameters.

    Args:
        *sources: Mappings, pair lists or pagination options.

    Returns:
        Parameter pairs in source order.
    """
    merged: list[tuple[str, str]] = []
    for source in sources:
        if source is None:
            continue
        if isinstance(source, PaginationOptions):
            merged.extend(source.to_params())
        elif isinstance(source, Mapping):
            for key, value in source.items():
                if value is None:
                    continue
                if isinstance(value, (list, tuple)):
                    merged.extend((key, str(item)) for item in value)
                else:
                    merged.append((key, str(value)))
        else:
            merged.extend(source)
    return merged
