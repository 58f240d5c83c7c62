"""Unit tests for multipart/related encoding and decoding."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from nuxeo_sdk.exceptions import NuxeoDecodeError
from nuxeo_sdk.models import Blob
from nuxeo_sdk.multipart import MultipartReader, MultipartRelatedWriter


if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable


BOUNDARY = "nxboundary"


async def _chunks(data: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in data:
        yield chunk


def _split(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


def _body(*parts: tuple[str, bytes]) -> bytes:
    body = b""
    for headers, content in parts:
        body += f"--{BOUNDARY}\r\n{headers}\r\n\r\n".encode() + content + b"\r\n"
    return body + f"--{BOUNDARY}--\r\n".encode()


# ---------------------------------------------------------------------------
# Writer
# ---------------------------------------------------------------------------


class TestMultipartRelatedWriter:
    """Tests for the automation request encoder."""

    async def test_request_and_blob_parts(self) -> None:
        """Test the request part precedes each blob part."""
        blob = Blob.from_bytes(b"hello", "file.txt", "text/plain")
        writer = MultipartRelatedWriter(
            b'{"params":{"document":"/p/q"},"context":{"foo":"bar"}}',
            [blob],
            boundary=BOUNDARY,
        )

        body = b"".join([chunk async for chunk in writer])

        assert body == (
            b"--nxboundary\r\n"
            b"Content-Type: application/json+nxrequest\r\n"
            b'Content-Disposition: form-data; name="request"\r\n'
            b"Content-ID: request\r\n"
            b"\r\n"
            b'{"params":{"document":"/p/q"},"context":{"foo":"bar"}}\r\n'
            b"--nxboundary\r\n"
            b"Content-Type: text/plain\r\n"
            b'Content-Disposition: form-data; name="input"; filename="file.txt"\r\n'
            b"Content-ID: input0\r\n"
            b"\r\n"
            b"hello\r\n"
            b"--nxboundary--\r\n"
        )
        assert blob.consumed

    def test_content_type(self) -> None:
        """Test the announced media type and parameters."""
        writer = MultipartRelatedWriter(b"{}", [], boundary=BOUNDARY)
        assert writer.content_type == (
            "multipart/related; boundary=nxboundary; "
            'type="application/json+nxrequest"; start="request"'
        )

    async def test_streams_async_blob_content(self) -> None:
        """Test blobs backed by async streams are copied in order."""
        first = Blob("a.bin", stream=_chunks([b"ab", b"cd"]))
        second = Blob("b.bin", stream=_chunks([b"ef"]))
        writer = MultipartRelatedWriter(b"{}", [first, second], boundary=BOUNDARY)

        body = b"".join([chunk async for chunk in writer])

        assert b"\r\n\r\nabcd\r\n--nxboundary\r\n" in body
        assert b"Content-ID: input1\r\n\r\nef\r\n--nxboundary--\r\n" in body

    def test_random_boundary(self) -> None:
        """Test writers pick distinct boundaries."""
        assert (
            MultipartRelatedWriter(b"{}", []).boundary
            != MultipartRelatedWriter(b"{}", []).boundary
        )


# ---------------------------------------------------------------------------
# Reader
# ---------------------------------------------------------------------------


class TestMultipartReader:
    """Tests for the incremental multipart parser."""

    @pytest.mark.parametrize("chunk_size", [1, 3, 7, 1024])
    async def test_reads_parts_across_chunk_splits(self, chunk_size: int) -> None:
        """Test parts survive any chunking of the body."""
        body = _body(
            (
                "Content-Type: text/plain\r\n"
                'Content-Disposition: attachment; filename="a.txt"',
                b"first\r\nline",
            ),
            ("Content-Type: application/pdf", b"%PDF-1.4 --nxboundar"),
        )
        reader = MultipartReader(_chunks(_split(body, chunk_size)), BOUNDARY)

        parts = []
        async for part in reader:
            data = b"".join([chunk async for chunk in part.stream])
            parts.append((part.content_type, part.content_disposition, data))

        assert parts == [
            ("text/plain", 'attachment; filename="a.txt"', b"first\r\nline"),
            ("application/pdf", None, b"%PDF-1.4 --nxboundar"),
        ]

    async def test_skips_preamble_and_unread_parts(self) -> None:
        """Test advancing drains a part that was not read."""
        body = b"preamble\r\n" + _body(
            ("Content-Type: text/plain", b"skipped"),
            ("Content-Type: text/plain", b"kept"),
        )
        reader = MultipartReader(_chunks([body]), BOUNDARY)

        first = await reader.next_part()
        second = await reader.next_part()

        assert first is not None
        assert second is not None
        assert b"".join([chunk async for chunk in second.stream]) == b"kept"
        assert await reader.next_part() is None

    async def test_empty_part(self) -> None:
        """Test a part without content yields no bytes."""
        reader = MultipartReader(
            _chunks([_body(("Content-Type: text/plain", b""))]),
            BOUNDARY,
        )

        part = await reader.next_part()

        assert part is not None
        assert [chunk async for chunk in part.stream] == []
        assert await reader.next_part() is None

    async def test_truncated_body(self) -> None:
        """Test a body without closing boundary is an error."""
        body = f"--{BOUNDARY}\r\nContent-Type: text/plain\r\n\r\nno end".encode()
        reader = MultipartReader(_chunks([body]), BOUNDARY)

        part = await reader.next_part()
        assert part is not None
        with pytest.raises(NuxeoDecodeError, match="truncated"):
            async for _ in part.stream:
                pass

    def test_boundary_required(self) -> None:
        """Test a missing boundary is rejected."""
        with pytest.raises(NuxeoDecodeError):
            MultipartReader(_chunks([]), "")
