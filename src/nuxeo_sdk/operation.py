"""Automation operations and their polymorphic responses.

An :class:`Operation` names a server-side automation command together with
its input, parameters and context. Executing it yields an
:class:`OperationResponse` whose accessors interpret the answer as a
document, a document list, any entity, a blob or a list of blobs.
"""

from __future__ import annotations

import functools
import math
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Self

import httpx
from pydantic import TypeAdapter, ValidationError

from nuxeo_sdk.exceptions import NuxeoDecodeError, NuxeoUsageError
from nuxeo_sdk.models import Document, Documents, decode_entity
from nuxeo_sdk.models.blob import DEFAULT_MIME_TYPE, Blob
from nuxeo_sdk.models.timestamp import format_iso8601
from nuxeo_sdk.multipart import MultipartReader
from nuxeo_sdk.response import (
    blob_from_response,
    is_json_media_type,
    iter_response_bytes,
    map_transport_error,
    parse_content_length,
    parse_content_type,
    parse_disposition_filename,
)


if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from nuxeo_sdk.models.base import NuxeoBaseModel


__all__ = [
    "BlobInput",
    "DocumentInput",
    "Operation",
    "OperationId",
    "OperationInput",
    "OperationResponse",
    "stringify_param",
]


VOID_OPERATION_HEADER = "X-NXVoidOperation"


class OperationId:
    """Ids of commonly used automation operations."""

    BLOB_ATTACH = "Blob.Attach"
    BLOB_ATTACH_ON_DOCUMENT = "Blob.AttachOnDocument"
    BLOB_GET = "Blob.Get"
    BLOB_GET_LIST = "Blob.GetList"
    BLOB_REMOVE_FROM_DOCUMENT = "Blob.RemoveFromDocument"
    DIRECTORY_ENTRIES = "Directory.Entries"
    DOCUMENT_ADD_PERMISSION = "Document.AddPermission"
    DOCUMENT_CHECK_IN = "Document.CheckIn"
    DOCUMENT_CREATE = "Document.Create"
    DOCUMENT_DELETE = "Document.Delete"
    DOCUMENT_FETCH = "Repository.GetDocument"
    DOCUMENT_FOLLOW_LIFECYCLE = "Document.FollowLifecycleTransition"
    DOCUMENT_GET_BLOB = "Document.GetBlob"
    DOCUMENT_GET_BLOBS = "Document.GetBlobs"
    DOCUMENT_GET_BLOBS_BY_PROPERTY = "Document.GetBlobsByProperty"
    DOCUMENT_GET_CHILDREN = "Document.GetChildren"
    DOCUMENT_GET_LAST_VERSION = "Document.GetLastVersion"
    DOCUMENT_QUERY = "Repository.Query"
    DOCUMENT_REMOVE_PERMISSION = "Document.RemovePermission"
    DOCUMENT_REMOVE_PROXIES = "Document.RemoveProxies"
    DOCUMENT_TRASH = "Document.Trash"
    DOCUMENT_UNTRASH = "Document.Untrash"
    DOCUMENT_UPDATE = "Document.Update"
    ELASTICSEARCH_WAIT_FOR_INDEXING = "Elasticsearch.WaitForIndexing"
    FILE_MANAGER_IMPORT = "FileManager.Import"
    LOGIN = "login"


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DocumentInput:
    """Documents passed as operation input, by id or path."""

    refs: tuple[str, ...]

    def to_spec(self) -> str | None:
        """Return the ``input`` value: ``doc:<ref>`` or ``docs:<ref>,<ref>``."""
        if not self.refs:
            return None
        if len(self.refs) == 1:
            return f"doc:{self.refs[0]}"
        return "docs:" + ",".join(self.refs)


@dataclass(frozen=True)
class BlobInput:
    """Blobs passed as operation input, sent as multipart parts."""

    blobs: tuple[Blob, ...]


type OperationInput = DocumentInput | BlobInput | None


def _document_ref(document: str | Document) -> str:
    if isinstance(document, Document):
        ref = document.uid or document.path
        if not ref:
            msg = "document input needs a uid or a path"
            raise NuxeoUsageError(msg)
        return ref
    return document


def stringify_param(value: object) -> str:
    """Render an operation parameter or context value as a string.

    Booleans become ``true``/``false``, numbers keep full precision in
    plain decimal notation, datetimes use the server timestamp layout and lists
    are comma-joined.

    Example:
        >>> stringify_param(True), stringify_param(0.1), stringify_param(["a", 1])
        ('true', '0.1', 'a,1')
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return repr(value)
        return format(Decimal(repr(value)), "f")
    if isinstance(value, datetime):
        return format_iso8601(value)
    if isinstance(value, (list, tuple)):
        return ",".join(stringify_param(item) for item in value)
    return str(value)


class Operation:
    """An automation operation to execute.

    Setters return the operation so calls can be chained. An operation has
    either document input or blob input; setting one replaces the other.

    Example:
        ```python
        op = (
            client.operations.new_operation("Document.Update")
            .set_input_document("/default-domain/workspaces/ws")
            .set_param("properties", "dc:title=New title")
        )
        response = await client.operations.execute(op)
        doc = await response.as_document()
        ```

    Attributes:
        operation_id: The automation id, e.g. ``Blob.Attach``.
        params: Parameters, stringified when sent.
        context: Context values, stringified when sent.
        void: Whether the server should skip returning a result.
    """

    def __init__(self, operation_id: str) -> None:
        if not operation_id:
            msg = "operation id must not be empty"
            raise NuxeoUsageError(msg)
        self.operation_id = operation_id
        self.params: dict[str, object] = {}
        self.context: dict[str, object] = {}
        self.void = False
        self._input: OperationInput = None

    def __repr__(self) -> str:
        return f"Operation({self.operation_id!r})"

    @property
    def input(self) -> OperationInput:
        return self._input

    @property
    def document_refs(self) -> tuple[str, ...]:
        if isinstance(self._input, DocumentInput):
            return self._input.refs
        return ()

    @property
    def blobs(self) -> tuple[Blob, ...]:
        if isinstance(self._input, BlobInput):
            return self._input.blobs
        return ()

    @property
    def has_blobs(self) -> bool:
        return bool(self.blobs)

    @property
    def path(self) -> str:
        """Automation endpoint path, relative to the API root."""
        return f"/automation/{self.operation_id}"

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def set_input_document(self, document: str | Document) -> Self:
        """Use one document, given by id, path or entity, as input."""
        self._input = DocumentInput((_document_ref(document),))
        return self

    def set_input_documents(self, *documents: str | Document) -> Self:
        self._input = DocumentInput(tuple(_document_ref(doc) for doc in documents))
        return self

    def set_input_blob(self, blob: Blob) -> Self:
        self._input = BlobInput((blob,))
        return self

    def set_input_blobs(self, *blobs: Blob) -> Self:
        self._input = BlobInput(tuple(blobs))
        return self

    def clear_input(self) -> Self:
        self._input = None
        return self

    def set_param(self, name: str, value: object) -> Self:
        self.params[name] = value
        return self

    def set_params(self, params: Mapping[str, object]) -> Self:
        self.params.update(params)
        return self

    def set_context(self, name: str, value: object) -> Self:
        self.context[name] = value
        return self

    def set_void(self, void: bool = True) -> Self:  # noqa: FBT001, FBT002
        """Tell the server the caller does not need a result."""
        self.void = void
        return self

    # -------------------------------------------------------------------------
    # Encoding
    # -------------------------------------------------------------------------

    def input_spec(self) -> str | None:
        """Return the ``input`` field for document inputs, else None."""
        if isinstance(self._input, DocumentInput):
            return self._input.to_spec()
        return None

    def to_payload(self, *, include_input: bool = True) -> dict[str, Any]:
        """Return the JSON request, omitting empty sections.

        Args:
            include_input: Whether to include the document input spec. The
                multipart request part never carries it.
        """
        payload: dict[str, Any] = {}
        spec = self.input_spec() if include_input else None
        if spec is not None:
            payload["input"] = spec
        if self.params:
            payload["params"] = {
                key: stringify_param(value) for key, value in self.params.items()
            }
        if self.context:
            payload["context"] = {
                key: stringify_param(value) for key, value in self.context.items()
            }
        return payload

    def headers(self) -> dict[str, str]:
        """Return the headers specific to this operation."""
        if self.void:
            return {VOID_OPERATION_HEADER: "true"}
        return {}


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


@functools.cache
def _adapter(shape: Any) -> TypeAdapter[Any]:  # noqa: ANN401
    return TypeAdapter(shape)


def decode_into[T](data: Any, shape: type[T]) -> T:  # noqa: ANN401
    """Validate decoded JSON against ``shape``.

    Raises:
        NuxeoDecodeError: If the payload does not match.
    """
    try:
        return _adapter(shape).validate_python(data)
    except ValidationError as exc:
        msg = f"response does not match {getattr(shape, '__name__', shape)}: {exc}"
        raise NuxeoDecodeError(msg) from exc


class OperationResponse:
    """The answer of an automation call, decoded on demand.

    JSON accessors may be called repeatedly. Blob accessors hand the open
    response over to the caller; afterwards no other accessor may be used.
    A response that is not read through a blob accessor should be closed,
    ideally with ``async with``.

    Attributes:
        status_code: HTTP status of the answer.
        headers: Response headers.
        content_type: Media type of the answer, without parameters.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.status_code = response.status_code
        self.headers = response.headers
        self.content_type, self._content_params = parse_content_type(
            response.headers.get("Content-Type")
        )
        self._payload: Any = None
        self._loaded = False
        self._streamed = False

    @property
    def is_empty(self) -> bool:
        """Whether the server returned no content (void operations)."""
        return self.status_code == httpx.codes.NO_CONTENT

    @property
    def is_json(self) -> bool:
        return is_json_media_type(self.content_type)

    @property
    def is_multipart(self) -> bool:
        return self.content_type.startswith("multipart/")

    def _check_open(self) -> None:
        if self._streamed:
            msg = "operation response stream was already handed over"
            raise NuxeoUsageError(msg)

    async def json(self) -> Any:  # noqa: ANN401
        """Read the answer as JSON.

        Raises:
            NuxeoDecodeError: If the answer is not JSON.
        """
        self._check_open()
        if not self._loaded:
            if not self.is_json:
                msg = f"expected a JSON answer, got {self.content_type or 'no content'}"
                raise NuxeoDecodeError(msg)
            try:
                await self._response.aread()
            except httpx.HTTPError as exc:
                raise map_transport_error(exc) from exc
            finally:
                await self._response.aclose()
            try:
                self._payload = self._response.json()
            except ValueError as exc:
                msg = f"invalid JSON answer: {exc}"
                raise NuxeoDecodeError(msg) from exc
            self._loaded = True
        return self._payload

    async def entity(self) -> NuxeoBaseModel:
        """Decode the answer into the entity named by its ``entity-type``."""
        return decode_entity(await self.json())

    async def as_type[T](self, shape: type[T]) -> T:
        """Decode the JSON answer into ``shape``."""
        return decode_into(await self.json(), shape)

    async def _expect(self, entity_type: str) -> Any:  # noqa: ANN401
        data = await self.json()
        found = data.get("entity-type") if isinstance(data, dict) else None
        if found != entity_type:
            msg = f"expected entity-type {entity_type!r}, got {found!r}"
            raise NuxeoDecodeError(msg)
        return data

    async def as_document(self) -> Document:
        """Decode the answer as a single document."""
        return decode_into(await self._expect("document"), Document)

    async def as_documents(self) -> Documents:
        """Decode the answer as a document list."""
        return decode_into(await self._expect("documents"), Documents)

    async def as_blob(self) -> Blob:
        """Hand the answer over as one streaming blob.

        Raises:
            NuxeoDecodeError: If the answer is JSON, multipart or empty.
        """
        self._check_open()
        if self.is_empty or self.is_json or self.is_multipart or self._loaded:
            msg = f"expected a blob answer, got {self.content_type or 'no content'}"
            raise NuxeoDecodeError(msg)
        self._streamed = True
        return blob_from_response(self._response)

    async def as_blobs(self) -> AsyncIterator[Blob]:
        """Iterate the blobs of a multipart answer, one at a time.

        Each blob must be read before advancing; unread content is skipped.
        The response is closed when iteration ends.

        Raises:
            NuxeoDecodeError: If the answer is not multipart or is malformed.
        """
        self._check_open()
        if not self.is_multipart:
            got = self.content_type or "no content"
            msg = f"expected a multipart answer, got {got}"
            raise NuxeoDecodeError(msg)
        self._streamed = True
        reader = MultipartReader(
            iter_response_bytes(self._response),
            self._content_params.get("boundary", ""),
        )
        try:
            async for part in reader:
                media_type, _ = parse_content_type(part.content_type)
                yield Blob(
                    parse_disposition_filename(part.content_disposition),
                    media_type or DEFAULT_MIME_TYPE,
                    parse_content_length(part.content_length),
                    part.stream,
                )
        finally:
            await self._response.aclose()

    async def aclose(self) -> None:
        """Release the answer without reading it."""
        if not self._streamed:
            await self._response.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()
