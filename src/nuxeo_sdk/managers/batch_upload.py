"""Batch uploads: send files first, reference or process them afterwards.

A batch is a server-side session; the manager keeps no state between calls.
Files are addressed by a caller-chosen index and sent whole or in chunks.

Example:
    ```python
    batch = await client.batch_upload.create_batch()
    await client.batch_upload.upload(batch.batch_id, "0", Blob.from_path("big.iso"))
    doc.set_property("file:content", UploadInfo(batch_id=batch.batch_id, file_idx="0"))
    await client.repository().update_document(doc)
    ```
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING
from urllib.parse import quote

from nuxeo_sdk.exceptions import NuxeoUsageError
from nuxeo_sdk.managers.base import Manager, quote_segment
from nuxeo_sdk.models import BatchInfo, BatchUpload, Blob, UploadType


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from nuxeo_sdk.operation import Operation, OperationResponse
    from nuxeo_sdk.options import RequestOptions


__all__ = ["BatchUploadManager"]


HEADER_UPLOAD_TYPE = "X-Upload-Type"
HEADER_FILE_NAME = "X-File-Name"
HEADER_FILE_TYPE = "X-File-Type"
HEADER_FILE_SIZE = "X-File-Size"
HEADER_CHUNK_INDEX = "X-Upload-Chunk-Index"
HEADER_CHUNK_COUNT = "X-Upload-Chunk-Count"


def _file_headers(
    upload_type: UploadType,
    filename: str,
    mime_type: str,
    file_size: int,
) -> dict[str, str]:
    headers = {
        HEADER_UPLOAD_TYPE: upload_type.value,
        HEADER_FILE_NAME: quote(filename, safe=""),
        HEADER_FILE_TYPE: mime_type,
    }
    if file_size >= 0:
        headers[HEADER_FILE_SIZE] = str(file_size)
    return headers


class BatchUploadManager(Manager):
    """Creates batches and uploads files into them."""

    def _batch_path(self, batch_id: str, file_idx: str | None = None) -> str:
        path = f"/upload/{quote_segment(batch_id)}"
        if file_idx is not None:
            path += f"/{quote_segment(file_idx)}"
        return path

    async def create_batch(
        self,
        handler: str | None = None,
        *,
        options: RequestOptions | None = None,
    ) -> BatchInfo:
        """Open a new batch.

        Args:
            handler: Upload handler name (e.g. ``s3``); the server default
                when omitted.
            options: Per-call request options.

        Returns:
            The batch id.
        """
        path = f"/upload/new/{quote_segment(handler)}" if handler else "/upload/"
        batch = await self._client.request_into(
            "POST", path, BatchInfo, options=options
        )
        self._logger.debug("batch_created", batch_id=batch.batch_id, handler=handler)
        return batch

    async def upload(
        self,
        batch_id: str,
        file_idx: str,
        blob: Blob,
        *,
        options: RequestOptions | None = None,
    ) -> BatchUpload:
        """Send a whole file in one request.

        The blob stream is consumed.

        Args:
            batch_id: The batch id.
            file_idx: Index of the file within the batch.
            blob: The file content and metadata.
            options: Per-call request options.

        Returns:
            The server record of the file.
        """
        headers = _file_headers(
            UploadType.NORMAL, blob.filename, blob.mime_type, blob.length
        )
        if blob.length >= 0 and not blob.in_memory:
            headers["Content-Length"] = str(blob.length)
        return await self._client.request_into(
            "POST",
            self._batch_path(batch_id, file_idx),
            BatchUpload,
            content=blob,
            headers=headers,
            options=options,
        )

    async def upload_chunk(  # noqa: PLR0913
        self,
        batch_id: str,
        file_idx: str,
        chunk: bytes,
        chunk_index: int,
        chunk_count: int,
        *,
        filename: str = "",
        mime_type: str = "application/octet-stream",
        file_size: int = -1,
        options: RequestOptions | None = None,
    ) -> BatchUpload:
        """Send one chunk of a file.

        Chunks of one file may be sent concurrently; the caller keeps their
        indexes unique and waits for all of them before executing the batch.

        Args:
            batch_id: The batch id.
            file_idx: Index of the file within the batch.
            chunk: The chunk bytes.
            chunk_index: Zero-based chunk index.
            chunk_count: Total number of chunks of the file.
            filename: Name of the whole file.
            mime_type: Media type of the whole file.
            file_size: Size of the whole file, or -1 if unknown.
            options: Per-call request options.

        Returns:
            The server record, reporting the chunks received so far.

        Raises:
            NuxeoUsageError: If the chunk index is outside ``chunk_count``.
        """
        if chunk_count < 1 or not 0 <= chunk_index < chunk_count:
            msg = f"chunk index {chunk_index} outside 0..{chunk_count - 1}"
            raise NuxeoUsageError(msg)
        headers = _file_headers(UploadType.CHUNKED, filename, mime_type, file_size)
        headers[HEADER_CHUNK_INDEX] = str(chunk_index)
        headers[HEADER_CHUNK_COUNT] = str(chunk_count)
        return await self._client.request_into(
            "POST",
            self._batch_path(batch_id, file_idx),
            BatchUpload,
            content=chunk,
            headers=headers,
            options=options,
        )

    async def upload_chunks(  # noqa: PLR0913
        self,
        batch_id: str,
        file_idx: str,
        source: Blob | Iterable[tuple[int, bytes]],
        chunk_count: int,
        *,
        filename: str | None = None,
        mime_type: str | None = None,
        file_size: int | None = None,
        options: RequestOptions | None = None,
    ) -> BatchUpload:
        """Send a file as ``chunk_count`` sequential chunks.

        Args:
            batch_id: The batch id.
            file_idx: Index of the file within the batch.
            source: A blob of known length, split into equal chunks, or
                ``(index, bytes)`` pairs sent in the given order.
            chunk_count: Total number of chunks.
            filename: File name; defaults to the blob name.
            mime_type: Media type; defaults to the blob type.
            file_size: Total size; defaults to the blob length.
            options: Per-call request options.

        Returns:
            The server record after the last chunk.

        Raises:
            NuxeoUsageError: If an index repeats or is out of range, if the
                blob length is unknown or smaller than ``chunk_count``, or if the
                blob ends early.
        """
        if isinstance(source, Blob):
            filename = source.filename if filename is None else filename
            mime_type = source.mime_type if mime_type is None else mime_type
            file_size = source.length if file_size is None else file_size
            chunks = _split_blob(source, chunk_count)
        else:
            chunks = _aiter_pairs(source)

        log = self._logger.bind(batch_id=batch_id, file_idx=file_idx)
        sent: set[int] = set()
        record: BatchUpload | None = None
        async for index, data in chunks:
            if index in sent:
                msg = f"chunk index {index} sent twice"
                raise NuxeoUsageError(msg)
            record = await self.upload_chunk(
                batch_id,
                file_idx,
                data,
                index,
                chunk_count,
                filename=filename or "",
                mime_type=mime_type or "application/octet-stream",
                file_size=-1 if file_size is None else file_size,
                options=options,
            )
            sent.add(index)
            log.debug("chunk_uploaded", chunk_index=index, chunk_count=chunk_count)

        if record is None:
            msg = "no chunk to upload"
            raise NuxeoUsageError(msg)
        return record

    async def fetch_batch_uploads(
        self,
        batch_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> list[BatchUpload]:
        """Return the records of every file in a batch, empty while it has none."""
        return await self._client.request_into(
            "GET",
            self._batch_path(batch_id),
            list[BatchUpload],
            on_empty=list,
            options=options,
        )

    async def fetch_batch_upload(
        self,
        batch_id: str,
        file_idx: str,
        *,
        options: RequestOptions | None = None,
    ) -> BatchUpload:
        return await self._client.request_into(
            "GET", self._batch_path(batch_id, file_idx), BatchUpload, options=options
        )

    async def cancel(
        self,
        batch_id: str,
        *,
        options: RequestOptions | None = None,
    ) -> None:
        """Drop a batch and its files; later calls on it fail with 404."""
        await self._client.request_void(
            "DELETE", self._batch_path(batch_id), options=options
        )
        self._logger.debug("batch_cancelled", batch_id=batch_id)

    async def execute_batch_uploads(
        self,
        batch_id: str,
        operation: Operation,
        *,
        options: RequestOptions | None = None,
    ) -> OperationResponse:
        """Run an operation taking every file of the batch as input."""
        operation_id = quote_segment(operation.operation_id)
        return await self._client.request_operation(
            f"{self._batch_path(batch_id)}/execute/{operation_id}",
            operation,
            options=options,
        )

    async def execute_batch_upload(
        self,
        batch_id: str,
        file_idx: str,
        operation: Operation,
        *,
        options: RequestOptions | None = None,
    ) -> OperationResponse:
        """Run an operation taking one file of the batch as input."""
        path = self._batch_path(batch_id, file_idx)
        return await self._client.request_operation(
            f"{path}/execute/{quote_segment(operation.operation_id)}",
            operation,
            options=options,
        )


async def _aiter_pairs(
    pairs: Iterable[tuple[int, bytes]],
) -> AsyncIterator[tuple[int, bytes]]:
    for pair in pairs:
        yield pair


async def _split_blob(
    blob: Blob,
    chunk_count: int,
) -> AsyncIterator[tuple[int, bytes]]:
    if chunk_count < 1:
        msg = f"chunk count must be positive, got {chunk_count}"
        raise NuxeoUsageError(msg)
    if blob.length < 0:
        msg = "cannot split a blob of unknown length"
        raise NuxeoUsageError(msg)
    if chunk_count > max(blob.length, 1):
        msg = f"cannot split {blob.length} bytes into {chunk_count} chunks"
        raise NuxeoUsageError(msg)
    chunk_size = max(1, math.ceil(blob.length / chunk_count))

    index = 0
    buffer = bytearray()
    async for data in blob.aiter_bytes():
        buffer.extend(data)
        while index < chunk_count - 1 and len(buffer) >= chunk_size:
            yield index, bytes(buffer[:chunk_size])
            del buffer[:chunk_size]
            index += 1
    if index != chunk_count - 1:
        msg = f"blob ended after {index} of {chunk_count} chunks"
        raise NuxeoUsageError(msg)
    yield index, bytes(buffer)
