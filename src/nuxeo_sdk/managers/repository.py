"""Document operations of one repository."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from nuxeo_sdk.exceptions import NuxeoUsageError
from nuxeo_sdk.managers.base import Manager, quote_path, quote_segment, quote_xpath
from nuxeo_sdk.models import (
    ACP,
    Audit,
    Document,
    Documents,
    Tasks,
    Workflow,
    Workflows,
)
from nuxeo_sdk.operation import Operation, OperationId
from nuxeo_sdk.options import RequestOptions


if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from nuxeo_sdk.client import NuxeoClient
    from nuxeo_sdk.models import Blob
    from nuxeo_sdk.options import PaginationOptions


__all__ = ["DEFAULT_BLOB_XPATH", "DEFAULT_REPOSITORY", "Repository"]


DEFAULT_REPOSITORY = "default"
DEFAULT_BLOB_XPATH = "blobholder:0"


class Repository(Manager):
    """Documents of one repository, addressed by id or by path.

    Example:
        ```python
        repo = client.repository()
        ws = await repo.fetch_document_by_path("/default-domain/workspaces")
        note = Document(name="note", type="Note")
        note.set_property("dc:title", "My note")
        note = await repo.create_document_by_id(ws.uid, note)
        ```

    Attributes:
        name: The repository name.
    """

    def __init__(self, client: NuxeoClient, name: str = DEFAULT_REPOSITORY) -> None:
        super().__init__(client)
        self.name = name

    def __repr__(self) -> str:
        return f"Repository({self.name!r})"

    # -------------------------------------------------------------------------
    # Addressing
    # -------------------------------------------------------------------------

    @property
    def _prefix(self) -> str:
        return f"/repo/{quote_segment(self.name)}"

    def _by_id(self, uid: str) -> str:
        return f"{self._prefix}/id/{quote_segment(uid)}"

    def _by_path(self, path: str) -> str:
        return f"{self._prefix}/path{quote_path(path)}"

    def _options(self, options: RequestOptions | None) -> RequestOptions | None:
        """Target this repository on endpoints without a repository segment."""
        if self.name == DEFAULT_REPOSITORY:
            return options
        options = options or RequestOptions()
        if options.repository_name:
            return options
        return options.with_repository(self.name)

    # -------------------------------------------------------------------------
    # Documents
    # -------------------------------------------------------------------------

    async def fetch_root(self, *, options: RequestOptions | None = None) -> Document:
        """Fetch the root document of the repository."""
        return await self.fetch_document_by_path("/", options=options)

    async def fetch_document_by_id(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        return await self._client.request_into(
            "GET", self._by_id(uid), Document, options=options
        )

    async def fetch_document_by_path(
        self,
        path: str,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        return await self._client.request_into(
            "GET", self._by_path(path), Document, options=options
        )

    async def create_document_by_id(
        self,
        parent_id: str,
        document: Document,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        """Create ``document`` under the parent with id ``parent_id``.

        Args:
            parent_id: Uid of the parent folder.
            document: The document to create; ``name`` and ``type`` are
                required, ``properties`` are optional.
            options: Per-call request options.

        Returns:
            The created document, as stored by the server.
        """
        return await self._client.request_into(
            "POST",
            self._by_id(parent_id),
            Document,
            json=document.to_create_payload(),
            options=options,
        )

    async def create_document_by_path(
        self,
        parent_path: str,
        document: Document,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        return await self._client.request_into(
            "POST",
            self._by_path(parent_path),
            Document,
            json=document.to_create_payload(),
            options=options,
        )

    async def update_document(
        self,
        document: Document,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        """Save the properties of ``document``, which must carry a uid.

        The change token is sent along so the server can reject concurrent
        modifications.
        """
        if not document.uid:
            msg = "cannot update a document without uid"
            raise NuxeoUsageError(msg)
        return await self._client.request_into(
            "PUT",
            self._by_id(document.uid),
            Document,
            json=document.to_update_payload(),
            options=options,
        )

    async def delete_document(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        await self._client.request_void("DELETE", self._by_id(uid), options=options)

    async def trash_document(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        """Move a document to the trash."""
        return await self._run_on_document(OperationId.DOCUMENT_TRASH, uid, options)

    async def untrash_document(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> Document:
        """Restore a trashed document."""
        return await self._run_on_document(OperationId.DOCUMENT_UNTRASH, uid, options)

    async def _run_on_document(
        self,
        operation_id: str,
        uid: str,
        options: RequestOptions | None,
    ) -> Document:
        operation = Operation(operation_id).set_input_document(uid)
        async with await self._client.operations.execute(
            operation, options=self._options(options)
        ) as response:
            return await response.as_document()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    async def query(
        self,
        query: str,
        query_params: Sequence[object] = (),
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Documents:
        """Run an NXQL query.

        Args:
            query: The NXQL statement, with ``?`` placeholders.
            query_params: Positional values of the placeholders.
            pagination: Page selection.
            options: Per-call request options.

        Returns:
            One page of matching documents.
        """
        return await self._client.request_into(
            "GET",
            "/query",
            Documents,
            params=[
                ("query", query),
                *_query_params(query_params),
                *(pagination.to_params() if pagination else ()),
            ],
            options=self._options(options),
        )

    async def query_by_provider(
        self,
        provider: str,
        query_params: Sequence[object] = (),
        named_params: Mapping[str, object] | None = None,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Documents:
        """Run a page provider with positional and named parameters."""
        params = [
            *_query_params(query_params),
            *((key, str(value)) for key, value in (named_params or {}).items()),
            *(pagination.to_params() if pagination else ()),
        ]
        return await self._client.request_into(
            "GET",
            f"/query/{quote_segment(provider)}",
            Documents,
            params=params,
            options=self._options(options),
        )

    # -------------------------------------------------------------------------
    # Children, permissions, audit
    # -------------------------------------------------------------------------

    async def fetch_children_by_id(
        self,
        uid: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Documents:
        return await self._client.request_into(
            "GET",
            f"{self._by_id(uid)}/@children",
            Documents,
            params=pagination,
            options=options,
        )

    async def fetch_children_by_path(
        self,
        path: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Documents:
        return await self._client.request_into(
            "GET",
            f"{self._by_path(path)}/@children",
            Documents,
            params=pagination,
            options=options,
        )

    async def fetch_acp_by_id(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> ACP:
        return await self._client.request_into(
            "GET", f"{self._by_id(uid)}/@acl", ACP, options=options
        )

    async def fetch_acp_by_path(
        self,
        path: str,
        *,
        options: RequestOptions | None = None,
    ) -> ACP:
        return await self._client.request_into(
            "GET", f"{self._by_path(path)}/@acl", ACP, options=options
        )

    async def fetch_audit_by_id(
        self,
        uid: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Audit:
        return await self._client.request_into(
            "GET",
            f"{self._by_id(uid)}/@audit",
            Audit,
            params=pagination,
            options=options,
        )

    async def fetch_audit_by_path(
        self,
        path: str,
        pagination: PaginationOptions | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> Audit:
        return await self._client.request_into(
            "GET",
            f"{self._by_path(path)}/@audit",
            Audit,
            params=pagination,
            options=options,
        )

    # -------------------------------------------------------------------------
    # Blobs
    # -------------------------------------------------------------------------

    async def stream_blob_by_id(
        self,
        uid: str,
        xpath: str = DEFAULT_BLOB_XPATH,
        *,
        options: RequestOptions | None = None,
    ) -> Blob:
        """Stream a blob of a document.

        Args:
            uid: The document uid.
            xpath: Property holding the blob, e.g. ``file:content``.
            options: Per-call request options.

        Returns:
            A blob backed by the open response; read or close it.
        """
        return await self._client.request_blob(
            "GET", f"{self._by_id(uid)}/@blob/{quote_xpath(xpath)}", options=options
        )

    async def stream_blob_by_path(
        self,
        path: str,
        xpath: str = DEFAULT_BLOB_XPATH,
        *,
        options: RequestOptions | None = None,
    ) -> Blob:
        return await self._client.request_blob(
            "GET",
            f"{self._by_path(path)}/@blob/{quote_xpath(xpath)}",
            options=options,
        )

    # -------------------------------------------------------------------------
    # Workflows and tasks
    # -------------------------------------------------------------------------

    async def start_workflow_instance_by_id(
        self,
        uid: str,
        workflow: Workflow,
        *,
        options: RequestOptions | None = None,
    ) -> Workflow:
        """Start a workflow model on a document."""
        return await self._client.request_into(
            "POST",
            f"{self._by_id(uid)}/@workflow",
            Workflow,
            json=workflow.to_start_payload(),
            options=options,
        )

    async def start_workflow_instance_by_path(
        self,
        path: str,
        workflow: Workflow,
        *,
        options: RequestOptions | None = None,
    ) -> Workflow:
        return await self._client.request_into(
            "POST",
            f"{self._by_path(path)}/@workflow",
            Workflow,
            json=workflow.to_start_payload(),
            options=options,
        )

    async def fetch_workflow_instances_by_id(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> Workflows:
        return await self._client.request_into(
            "GET", f"{self._by_id(uid)}/@workflow", Workflows, options=options
        )

    async def fetch_workflow_instances_by_path(
        self,
        path: str,
        *,
        options: RequestOptions | None = None,
    ) -> Workflows:
        return await self._client.request_into(
            "GET", f"{self._by_path(path)}/@workflow", Workflows, options=options
        )

    async def fetch_tasks_by_id(
        self,
        uid: str,
        *,
        options: RequestOptions | None = None,
    ) -> Tasks:
        return await self._client.request_into(
            "GET", f"{self._by_id(uid)}/@task", Tasks, options=options
        )

    async def fetch_tasks_by_path(
        self,
        path: str,
        *,
        options: RequestOptions | None = None,
    ) -> Tasks:
        return await self._client.request_into(
            "GET", f"{self._by_path(path)}/@task", Tasks, options=options
        )

    # -------------------------------------------------------------------------
    # Adapters
    # -------------------------------------------------------------------------

    def _adapter_path(self, uid: str, adapter: str, suffix: str) -> str:
        path = f"{self._by_id(uid)}/@{quote_segment(adapter)}"
        if suffix:
            path += quote_path(suffix)
        return path

    async def fetch_adapter[T](  # noqa: PLR0913
        self,
        uid: str,
        adapter: str,
        into: type[T],
        suffix: str = "",
        params: Mapping[str, object] | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> T:
        """Read a document adapter, e.g. ``@rendition/pdf``.

        Args:
            uid: The document uid.
            adapter: Adapter name, without ``@``.
            into: Type the answer is decoded into.
            suffix: Path below the adapter.
            params: Query parameters.
            options: Per-call request options.
        """
        return await self._client.request_into(
            "GET",
            self._adapter_path(uid, adapter, suffix),
            into,
            params=params,
            options=options,
        )

    async def create_adapter[T](  # noqa: PLR0913
        self,
        uid: str,
        adapter: str,
        payload: Any,  # noqa: ANN401
        into: type[T],
        suffix: str = "",
        *,
        options: RequestOptions | None = None,
    ) -> T:
        return await self._client.request_into(
            "POST",
            self._adapter_path(uid, adapter, suffix),
            into,
            json=payload,
            options=options,
        )

    async def update_adapter[T](  # noqa: PLR0913
        self,
        uid: str,
        adapter: str,
        payload: Any,  # noqa: ANN401
        into: type[T],
        suffix: str = "",
        *,
        options: RequestOptions | None = None,
    ) -> T:
        return await self._client.request_into(
            "PUT",
            self._adapter_path(uid, adapter, suffix),
            into,
            json=payload,
            options=options,
        )

    async def delete_adapter(
        self,
        uid: str,
        adapter: str,
        suffix: str = "",
        *,
        options: RequestOptions | None = None,
    ) -> None:
        await self._client.request_void(
            "DELETE", self._adapter_path(uid, adapter, suffix), options=options
        )


def _query_params(values: Sequence[object]) -> list[tuple[str, str]]:
    return [("queryParams", str(value)) for value in values]
