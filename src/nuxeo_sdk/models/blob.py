"""Binary content with metadata.

A :class:`Blob` wraps a byte stream going to or coming from the server. The
stream is single-pass: the first consumer reads or closes it, a second read
raises :class:`NuxeoUsageError`.
"""

from __future__ import annotations

import asyncio
import mimetypes
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable
from pathlib import Path
from typing import IO, Self

from nuxeo_sdk.exceptions import NuxeoUsageError


__all__ = ["DEFAULT_MIME_TYPE", "Blob", "ByteSource"]


DEFAULT_MIME_TYPE = "application/octet-stream"
DEFAULT_CHUNK_SIZE = 65536

type ByteSource = bytes | AsyncIterable[bytes] | Iterable[bytes] | IO[bytes]


class Blob:
    """A binary stream with filename, MIME type and optional length.

    Blobs returned by the SDK are backed by an open HTTP response; drain
    them or close them, ideally with ``async with``.

    Example:
        ```python
        async with await repository.stream_blob_by_path("/ws/report") as blob:
            async for chunk in blob.aiter_bytes():
                out.write(chunk)

        upload = Blob.from_bytes(b"hello", "hello.txt", "text/plain")
        ```

    Attributes:
        filename: File name announced with the content.
        mime_type: Media type of the content.
        length: Size in bytes, or -1 when unknown.
        digest: Content digest, when the server provides one.
        digest_algorithm: Algorithm of ``digest``.
        data: Server URL of the content, when described inline.
    """

    def __init__(  # noqa: PLR0913
        self,
        filename: str = "",
        mime_type: str = DEFAULT_MIME_TYPE,
        length: int = -1,
        stream: ByteSource | None = None,
        *,
        digest: str | None = None,
        digest_algorithm: str | None = None,
        data: str | None = None,
        on_close: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.filename = filename
        self.mime_type = mime_type or DEFAULT_MIME_TYPE
        self.length = length
        self.digest = digest
        self.digest_algorithm = digest_algorithm
        self.data = data
        self._stream = stream
        self._on_close = on_close
        self._consumed = False
        self._closed = False

    @classmethod
    def from_bytes(
        cls,
        content: bytes,
        filename: str = "",
        mime_type: str = DEFAULT_MIME_TYPE,
    ) -> Blob:
        """Create an in-memory blob."""
        return cls(filename, mime_type, len(content), content)

    @classmethod
    def from_path(cls, path: Path | str, mime_type: str | None = None) -> Blob:
        """Create a blob reading a local file lazily.

        Args:
            path: File to send.
            mime_type: Media type; guessed from the file name when omitted.

        Returns:
            A blob whose stream opens the file on first read.
        """
        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME_TYPE
        return cls(path.name, mime_type, path.stat().st_size, _read_file(path))

    @property
    def consumed(self) -> bool:
        """Whether the stream was already handed to a consumer."""
        return self._consumed

    @property
    def in_memory(self) -> bool:
        """Whether the content is a bytes object that can be sent again."""
        return isinstance(self._stream, bytes)

    def _claim(self) -> ByteSource | None:
        if self._consumed or self._closed:
            msg = f"blob stream {self.filename!r} was already consumed"
            raise NuxeoUsageError(msg)
        self._consumed = True
        return self._stream

    def take_content(self) -> bytes | AsyncIterator[bytes]:
        """Hand the content over for sending, marking the blob consumed.

        Returns:
            The bytes when held in memory, otherwise an async byte iterator.
        """
        stream = self._claim()
        if isinstance(stream, bytes):
            return stream
        return self._iterate(stream, DEFAULT_CHUNK_SIZE)

    async def aiter_bytes(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> AsyncIterator[bytes]:
        """Iterate the content once; the blob is closed afterwards."""
        stream = self._claim()
        async for chunk in self._iterate(stream, chunk_size):
            yield chunk

    async def read(self) -> bytes:
        """Read the whole content into memory."""
        return b"".join([chunk async for chunk in self.aiter_bytes()])

    async def _iterate(
        self,
        stream: ByteSource | None,
        chunk_size: int,
    ) -> AsyncIterator[bytes]:
        try:
            if stream is None:
                return
            if isinstance(stream, bytes):
                for start in range(0, len(stream), chunk_size):
                    yield stream[start : start + chunk_size]
            elif isinstance(stream, AsyncIterable):
                async for chunk in stream:
                    yield chunk
            elif hasattr(stream, "read"):
                while chunk := await asyncio.to_thread(stream.read, chunk_size):
                    yield chunk
            else:
                for chunk in stream:
                    yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        """Release the underlying stream without reading it."""
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"Blob(filename={self.filename!r}, mime_type={self.mime_type!r}, "
            f"length={self.length})"
        )


async def _read_file(path: Path) -> AsyncIterator[bytes]:
    with path.open("rb") as handle:
        while chunk := await asyncio.to_thread(handle.read, DEFAULT_CHUNK_SIZE):
            yield chunk
