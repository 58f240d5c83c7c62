"""Unit tests for automation operations and their responses."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest
import respx  # noqa: TC002

from nuxeo_sdk import (
    Blob,
    Document,
    NuxeoClient,
    NuxeoDecodeError,
    NuxeoUsageError,
    Operation,
    OperationId,
)
from nuxeo_sdk.models import Login
from nuxeo_sdk.operation import stringify_param


# ---------------------------------------------------------------------------
# Operation building
# ---------------------------------------------------------------------------


class TestStringifyParam:
    """Tests for parameter stringification."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("text", "text"),
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (0.1, "0.1"),
            (1e-7, "0.0000001"),
            (1e20, "100000000000000000000"),
            (2.5e-3, "0.0025"),
            (datetime(2024, 1, 15, 10, 30, tzinfo=UTC), "2024-01-15T10:30:00Z"),
            (["a", 1, True], "a,1,true"),
        ],
    )
    def test_values(self, value: object, expected: str) -> None:
        """Test each value kind renders as the server expects."""
        assert stringify_param(value) == expected


class TestOperation:
    """Tests for the operation builder."""

    def test_empty_id_rejected(self) -> None:
        """Test an operation needs an id."""
        with pytest.raises(NuxeoUsageError):
            Operation("")

    def test_path(self) -> None:
        """Test the automation endpoint."""
        assert Operation(OperationId.DOCUMENT_FETCH).path == (
            "/automation/Repository.GetDocument"
        )

    def test_single_document_input(self) -> None:
        """Test one document is sent as doc:<ref>."""
        op = Operation("Document.Update").set_input_document("/ws/note")
        assert op.input_spec() == "doc:/ws/note"

    def test_many_documents_input(self) -> None:
        """Test several documents are sent as docs:<ref>,<ref>."""
        doc = Document(uid="uid-2")
        op = Operation("Document.Delete").set_input_documents("uid-1", doc)
        assert op.input_spec() == "docs:uid-1,uid-2"
        assert op.document_refs == ("uid-1", "uid-2")

    def test_document_without_reference_rejected(self) -> None:
        """Test a document entity needs a uid or path."""
        with pytest.raises(NuxeoUsageError):
            Operation("Document.Update").set_input_document(Document())

    def test_blob_input_replaces_documents(self) -> None:
        """Test setting blobs drops document input."""
        blob = Blob.from_bytes(b"x", "x.txt")
        op = (
            Operation(OperationId.FILE_MANAGER_IMPORT)
            .set_input_document("/ws")
            .set_input_blob(blob)
        )

        assert op.has_blobs
        assert op.blobs == (blob,)
        assert op.input_spec() is None
        assert op.document_refs == ()

    def test_payload_omits_empty_sections(self) -> None:
        """Test only populated sections are sent."""
        assert Operation("Document.Fetch").to_payload() == {}

    def test_payload(self) -> None:
        """Test params and context are stringified."""
        op = (
            Operation("Document.Create")
            .set_input_document("/ws")
            .set_param("type", "Note")
            .set_params({"name": "note", "versioning": True})
            .set_context("foo", "bar")
        )

        assert op.to_payload() == {
            "input": "doc:/ws",
            "params": {"type": "Note", "name": "note", "versioning": "true"},
            "context": {"foo": "bar"},
        }
        assert "input" not in op.to_payload(include_input=False)

    def test_void_header(self) -> None:
        """Test void operations announce it."""
        assert Operation("Document.Delete").headers() == {}
        assert Operation("Document.Delete").set_void().headers() == {
            "X-NXVoidOperation": "true",
        }


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------


class TestExecute:
    """Tests for operation execution and response accessors."""

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_json_request(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
        document_json: dict[str, Any],
    ) -> None:
        """Test document operations are sent as JSON."""
        route = respx_mock.post("/nuxeo/api/v1/automation/Document.Update").mock(
            return_value=httpx.Response(200, json=document_json)
        )
        op = (
            client.operations.new_operation(OperationId.DOCUMENT_UPDATE)
            .set_input_document("/ws/note")
            .set_param("properties", "dc:title=Meeting notes")
        )

        async with await client.operations.execute(op) as response:
            doc = await response.as_document()

        assert doc.title == "Meeting notes"
        request = route.calls.last.request
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json, */*"
        assert json.loads(request.content) == {
            "input": "doc:/ws/note",
            "params": {"properties": "dc:title=Meeting notes"},
        }

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_multipart_request(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
    ) -> None:
        """Test blob input switches to multipart/related."""
        route = respx_mock.post("/nuxeo/api/v1/automation/Blob.Attach").mock(
            return_value=httpx.Response(204)
        )
        op = (
            Operation(OperationId.BLOB_ATTACH)
            .set_input_blob(Blob.from_bytes(b"hello", "file.txt", "text/plain"))
            .set_context("foo", "bar")
            .set_param("document", "/p/q")
            .set_void()
        )

        async with await client.operations.execute(op) as response:
            assert response.is_empty

        request = route.calls.last.request
        content_type = request.headers["Content-Type"]
        assert content_type.startswith("multipart/related; boundary=")
        assert request.headers["X-NXVoidOperation"] == "true"

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_as_documents(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
        documents_json: dict[str, Any],
    ) -> None:
        """Test document lists decode with their pagination state."""
        respx_mock.post("/nuxeo/api/v1/automation/Repository.Query").mock(
            return_value=httpx.Response(200, json=documents_json)
        )
        op = Operation(OperationId.DOCUMENT_QUERY).set_param(
            "query", "SELECT * FROM Note"
        )

        response = await client.operations.execute(op)
        docs = await response.as_documents()

        assert docs.results_count == 1
        assert docs.entries[0].type == "Note"

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_wrong_entity_type(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
        documents_json: dict[str, Any],
    ) -> None:
        """Test asking for a document when a list came back."""
        respx_mock.post("/nuxeo/api/v1/automation/Repository.Query").mock(
            return_value=httpx.Response(200, json=documents_json)
        )

        op = Operation(OperationId.DOCUMENT_QUERY)
        response = await client.operations.execute(op)

        with pytest.raises(NuxeoDecodeError, match="expected entity-type 'document'"):
            await response.as_document()
        # JSON accessors remain usable
        assert isinstance(await response.json(), dict)

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_execute_into(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
    ) -> None:
        """Test decoding into a caller-supplied type."""
        respx_mock.post("/nuxeo/api/v1/automation/login").mock(
            return_value=httpx.Response(
                200,
                json={"entity-type": "login", "username": "Administrator"},
            )
        )

        login = await client.operations.execute_into(
            Operation(OperationId.LOGIN), Login
        )

        assert login.username == "Administrator"

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_as_blob(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
    ) -> None:
        """Test a binary answer is handed over as a blob."""
        respx_mock.post("/nuxeo/api/v1/automation/Blob.Get").mock(
            return_value=httpx.Response(
                200,
                content=b"hello",
                headers={
                    "Content-Type": "text/plain",
                    "Content-Disposition": 'attachment; filename="hello.txt"',
                },
            )
        )
        op = Operation(OperationId.BLOB_GET).set_input_document("/ws/file")

        response = await client.operations.execute(op)
        blob = await response.as_blob()

        assert blob.filename == "hello.txt"
        assert await blob.read() == b"hello"
        with pytest.raises(NuxeoUsageError):
            await response.json()

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_as_blob_rejects_json(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
        document_json: dict[str, Any],
    ) -> None:
        """Test a JSON answer is not a blob."""
        respx_mock.post("/nuxeo/api/v1/automation/Blob.Get").mock(
            return_value=httpx.Response(200, json=document_json)
        )

        async with await client.operations.execute(
            Operation(OperationId.BLOB_GET)
        ) as response:
            with pytest.raises(NuxeoDecodeError):
                await response.as_blob()

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_as_blobs(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
    ) -> None:
        """Test a multipart answer is iterated blob by blob."""
        body = (
            b"--mixed\r\n"
            b"Content-Type: text/plain\r\n"
            b'Content-Disposition: attachment; filename="a.txt"\r\n'
            b"Content-Length: 5\r\n"
            b"\r\n"
            b"alpha\r\n"
            b"--mixed\r\n"
            b"Content-Type: application/octet-stream\r\n"
            b'Content-Disposition: attachment; filename="b.bin"\r\n'
            b"\r\n"
            b"\x00\x01\x02\r\n"
            b"--mixed--\r\n"
        )
        respx_mock.post("/nuxeo/api/v1/automation/Blob.GetList").mock(
            return_value=httpx.Response(
                200,
                content=body,
                headers={"Content-Type": 'multipart/mixed; boundary="mixed"'},
            )
        )
        op = Operation(OperationId.BLOB_GET_LIST).set_input_document("/ws/file")

        response = await client.operations.execute(op)
        blobs = [
            (blob.filename, blob.mime_type, blob.length, await blob.read())
            async for blob in response.as_blobs()
        ]

        assert blobs == [
            ("a.txt", "text/plain", 5, b"alpha"),
            ("b.bin", "application/octet-stream", -1, b"\x00\x01\x02"),
        ]

    @pytest.mark.respx(base_url="http://nuxeo.test")
    async def test_as_blobs_rejects_single_blob(
        self,
        client: NuxeoClient,
        respx_mock: respx.MockRouter,
    ) -> None:
        """Test a non-multipart answer cannot be iterated as blobs."""
        respx_mock.post("/nuxeo/api/v1/automation/Blob.GetList").mock(
            return_value=httpx.Response(
                200,
                content=b"x",
                headers={"Content-Type": "text/plain"},
            )
        )

        async with await client.operations.execute(
            Operation(OperationId.BLOB_GET_LIST)
        ) as response:
            with pytest.raises(NuxeoDecodeError):
                async for _ in response.as_blobs():
                    pass
