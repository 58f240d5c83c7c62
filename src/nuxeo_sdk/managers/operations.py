"""Automation operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from nuxeo_sdk.managers.base import Manager
from nuxeo_sdk.operation import Operation, OperationResponse


if TYPE_CHECKING:
    from nuxeo_sdk.options import RequestOptions


__all__ = ["OperationManager"]


class OperationManager(Manager):
    """Builds and runs automation operations.

    Example:
        ```python
        op = (
            client.operations.new_operation("Blob.AttachOnDocument")
            .set_input_blob(Blob.from_path("report.pdf"))
            .set_param("document", "/default-domain/workspaces/ws/report")
            .set_void()
        )
        async with await client.operations.execute(op):
            pass
        ```
    """

    def new_operation(self, operation_id: str) -> Operation:
        return Operation(operation_id)

    async def execute(
        self,
        operation: Operation,
        *,
        options: RequestOptions | None = None,
    ) -> OperationResponse:
        """Run ``operation`` and return its undecoded answer.

        The answer holds an open response; decode it with one of its
        accessors or close it.
        """
        self._logger.debug(
            "operation_execute",
            operation=operation.operation_id,
            blobs=len(operation.blobs),
        )
        return await self._client.request_operation(
            operation.path, operation, options=options
        )

    async def execute_into[T](
        self,
        operation: Operation,
        into: type[T],
        *,
        options: RequestOptions | None = None,
    ) -> T:
        """Run ``operation`` and decode its JSON answer into ``into``."""
        async with await self.execute(operation, options=options) as response:
            return await response.as_type(into)
