"""multipart/related encoding and decoding for automation calls.

Automation requests carrying blobs are sent as ``multipart/related``: the
first part is the JSON request, each following part one input blob.
Automation answers returning several blobs use a multipart body that
:class:`MultipartReader` splits incrementally, one part stream at a time.
"""

from __future__ import annotations

import uuid
from email.parser import BytesHeaderParser
from email.policy import HTTP
from typing import TYPE_CHECKING

from nuxeo_sdk.exceptions import NuxeoDecodeError


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from email.message import Message

    from nuxeo_sdk.models.blob import Blob


__all__ = [
    "REQUEST_CONTENT_TYPE",
    "MultipartPart",
    "MultipartReader",
    "MultipartRelatedWriter",
]


REQUEST_CONTENT_TYPE = "application/json+nxrequest"
CRLF = b"\r\n"


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class MultipartRelatedWriter:
    """Streams an automation request and its blobs as multipart/related.

    Iterating the writer yields the encoded body; blob contents are taken
    in declaration order as the body is produced, so each blob is read
    exactly once.

    Example:
        ```python
        writer = MultipartRelatedWriter(b'{"params":{}}', [blob])
        headers = {"Content-Type": writer.content_type}
        body = b"".join([part async for part in writer])
        ```
    """

    def __init__(
        self,
        request: bytes,
        blobs: Sequence[Blob],
        boundary: str | None = None,
    ) -> None:
        """Initialize the writer.

        Args:
            request: The JSON automation request.
            blobs: Input blobs, sent after the request part.
            boundary: Part boundary; a random one is generated when omitted.
        """
        self.request = request
        self.blobs = list(blobs)
        self.boundary = boundary or uuid.uuid4().hex

    @property
    def content_type(self) -> str:
        """The Content-Type header announcing this body."""
        return (
            f"multipart/related; boundary={self.boundary}; "
            f'type="{REQUEST_CONTENT_TYPE}"; start="request"'
        )

    def _part_header(self, headers: list[tuple[str, str]]) -> bytes:
        lines = [f"--{self.boundary}"]
        lines.extend(f"{name}: {value}" for name, value in headers)
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

    async def __aiter__(self) -> AsyncIterator[bytes]:
        yield self._part_header(
            [
                ("Content-Type", REQUEST_CONTENT_TYPE),
                ("Content-Disposition", 'form-data; name="request"'),
                ("Content-ID", "request"),
            ]
        )
        yield self.request
        yield CRLF

        for index, blob in enumerate(self.blobs):
            disposition = 'form-data; name="input"'
            if blob.filename:
                disposition += f'; filename="{_quote(blob.filename)}"'
            yield self._part_header(
                [
                    ("Content-Type", blob.mime_type),
                    ("Content-Disposition", disposition),
                    ("Content-ID", f"input{index}"),
                ]
            )
            content = blob.take_content()
            if isinstance(content, bytes):
                yield content
            else:
                async for chunk in content:
                    yield chunk
            yield CRLF

        yield f"--{self.boundary}--\r\n".encode("ascii")


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class MultipartPart:
    """One part of a multipart body.

    Attributes:
        headers: The part headers.
        stream: Async iterator over the part body. It must be consumed (or
            skipped by advancing the reader) before the next part is read.
    """

    def __init__(self, headers: Message, stream: AsyncIterator[bytes]) -> None:
        self.headers = headers
        self.stream = stream

    @property
    def content_type(self) -> str | None:
        return self.headers.get("Content-Type")

    @property
    def content_disposition(self) -> str | None:
        return self.headers.get("Content-Disposition")

    @property
    def content_length(self) -> str | None:
        return self.headers.get("Content-Length")


class MultipartReader:
    """Incremental parser of a multipart body.

    Parts are read lazily from the underlying byte stream; only the bytes
    of the current part boundary window are buffered.

    Example:
        ```python
        reader = MultipartReader(response.aiter_bytes(), boundary)
        while (part := await reader.next_part()) is not None:
            async for chunk in part.stream:
                out.write(chunk)
        ```
    """

    def __init__(self, chunks: AsyncIterator[bytes], boundary: str) -> None:
        """Initialize the reader.

        Args:
            chunks: The raw body.
            boundary: The boundary parameter of the body Content-Type.

        Raises:
            NuxeoDecodeError: If the boundary is empty.
        """
        if not boundary:
            msg = "multipart body without boundary"
            raise NuxeoDecodeError(msg)
        self._chunks = chunks
        self._delimiter = CRLF + b"--" + boundary.encode("latin-1")
        # A leading CRLF lets the first boundary match the delimiter pattern
        self._buffer = bytearray(CRLF)
        self._eof = False
        self._started = False
        self._done = False
        self._current: _PartStream | None = None

    async def _fill(self) -> bool:
        if self._eof:
            return False
        try:
            chunk = await anext(self._chunks)
        except StopAsyncIteration:
            self._eof = True
            return False
        self._buffer.extend(chunk)
        return True

    async def _require(self, size: int) -> None:
        while len(self._buffer) < size:
            if not await self._fill():
                msg = "truncated multipart body"
                raise NuxeoDecodeError(msg)

    async def _read_until(self, marker: bytes) -> bytes:
        start = 0
        while True:
            index = self._buffer.find(marker, start)
            if index >= 0:
                data = bytes(self._buffer[:index])
                del self._buffer[: index + len(marker)]
                return data
            start = max(0, len(self._buffer) - len(marker) + 1)
            if not await self._fill():
                msg = "truncated multipart body"
                raise NuxeoDecodeError(msg)

    async def _after_delimiter(self) -> None:
        """Consume what follows a delimiter: ``--`` ends the body."""
        await self._require(2)
        if self._buffer[:2] == b"--":
            self._done = True
            self._buffer.clear()
            return
        # Skip transport padding up to the end of the boundary line
        await self._read_until(CRLF)

    async def _read_headers(self) -> Message:
        await self._require(2)
        if self._buffer[:2] == CRLF:
            del self._buffer[:2]
            raw = b""
        else:
            raw = await self._read_until(CRLF + CRLF)
        return BytesHeaderParser(policy=HTTP).parsebytes(raw + CRLF + CRLF)

    async def next_part(self) -> MultipartPart | None:
        """Advance to the next part, skipping the rest of the current one.

        Returns:
            The next part, or None once the closing boundary was read.

        Raises:
            NuxeoDecodeError: If the body ends before its closing boundary.
        """
        if self._current is not None:
            await self._current.drain()
            self._current = None
        if not self._started:
            self._started = True
            await self._read_until(self._delimiter)
            await self._after_delimiter()
        if self._done:
            return None

        headers = await self._read_headers()
        self._current = _PartStream(self)
        return MultipartPart(headers, self._current)

    async def __aiter__(self) -> AsyncIterator[MultipartPart]:
        while (part := await self.next_part()) is not None:
            yield part


class _PartStream:
    """Body of the current part, ending at the next delimiter."""

    def __init__(self, reader: MultipartReader) -> None:
        self._reader = reader
        self._finished = False

    def __aiter__(self) -> _PartStream:
        return self

    async def __anext__(self) -> bytes:
        if self._finished:
            raise StopAsyncIteration
        reader = self._reader
        delimiter = reader._delimiter  # noqa: SLF001
        # Bytes that may be the start of a delimiter split across chunks
        keep = len(delimiter) - 1
        while True:
            buffer = reader._buffer  # noqa: SLF001
            index = buffer.find(delimiter)
            if index >= 0:
                data = bytes(buffer[:index])
                del buffer[: index + len(delimiter)]
                self._finished = True
                await reader._after_delimiter()  # noqa: SLF001
                if data:
                    return data
                raise StopAsyncIteration
            if len(buffer) > keep:
                data = bytes(buffer[:-keep])
                del buffer[:-keep]
                return data
            if not await reader._fill():  # noqa: SLF001
                msg = "truncated multipart body"
                raise NuxeoDecodeError(msg)

    async def drain(self) -> None:
        async for _ in self:
            pass
