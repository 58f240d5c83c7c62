"""Unit tests for the entity models and polymorphic JSON values."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import Any

import pytest

from nuxeo_sdk.exceptions import NuxeoDecodeError
from nuxeo_sdk.models import (
    ACP,
    BatchUpload,
    Capabilities,
    DocTypes,
    Document,
    Documents,
    Field,
    Group,
    Login,
    Schema,
    ServerVersion,
    Task,
    UploadInfo,
    UploadType,
    User,
    decode_entity,
    format_iso8601,
    parse_iso8601,
)
from nuxeo_sdk.models.field import dump_json


# ---------------------------------------------------------------------------
# Timestamps
# ---------------------------------------------------------------------------


class TestTimestamps:
    """Tests for the server timestamp layout."""

    def test_parse_utc_with_millis(self) -> None:
        """Test parsing a Z-suffixed timestamp with milliseconds."""
        value = parse_iso8601("2024-01-15T10:30:00.123Z")
        assert value == datetime(2024, 1, 15, 10, 30, 0, 123000, tzinfo=UTC)

    def test_parse_offset_normalised_to_utc(self) -> None:
        """Test explicit offsets are converted to UTC."""
        value = parse_iso8601("2024-01-15T12:30:00+02:00")
        assert value == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
        assert value.tzinfo == UTC

    def test_parse_rejects_missing_zone(self) -> None:
        """Test a naive timestamp is rejected."""
        with pytest.raises(ValueError, match="invalid ISO 8601"):
            parse_iso8601("2024-01-15T10:30:00")

    def test_format_drops_trailing_zero_millis(self) -> None:
        """Test whole seconds and trailing zeros are trimmed."""
        assert format_iso8601(datetime(2024, 1, 15, 10, 30, tzinfo=UTC)) == (
            "2024-01-15T10:30:00Z"
        )
        value = datetime(2024, 1, 15, 10, 30, 0, 500000, tzinfo=UTC)
        assert format_iso8601(value) == "2024-01-15T10:30:00.5Z"

    def test_format_converts_to_utc(self) -> None:
        """Test aware datetimes are rendered in UTC."""
        value = datetime(2024, 1, 15, 12, 30, tzinfo=timezone(timedelta(hours=2)))
        assert format_iso8601(value) == "2024-01-15T10:30:00Z"

    def test_format_naive_is_utc(self) -> None:
        """Test naive datetimes are taken as UTC."""
        naive = datetime(2024, 1, 15, 10, 30)  # noqa: DTZ001
        assert format_iso8601(naive) == "2024-01-15T10:30:00Z"


# ---------------------------------------------------------------------------
# Field
# ---------------------------------------------------------------------------


class TestField:
    """Tests for the polymorphic Field value."""

    def test_scalar_accessors(self) -> None:
        """Test each scalar accessor on a matching value."""
        assert Field('"hello"').as_str() == "hello"
        assert Field("42").as_int() == 42
        assert Field("42").as_float() == 42.0
        assert Field("1.5").as_float() == 1.5
        assert Field("true").as_bool() is True

    def test_null_reads_as_none_everywhere(self) -> None:
        """Test JSON null is None through every accessor."""
        field = Field.null()
        assert field.is_null()
        assert field.as_str() is None
        assert field.as_int() is None
        assert field.as_bool() is None
        assert field.as_datetime() is None
        assert field.as_str_list() is None
        assert field.as_model(dict) is None

    def test_string_null_is_not_null(self) -> None:
        """Test the string "null" stays a string."""
        field = Field('"null"')
        assert not field.is_null()
        assert field.as_str() == "null"

    def test_mismatch_raises_decode_error(self) -> None:
        """Test reading a value as the wrong type."""
        with pytest.raises(NuxeoDecodeError):
            Field('"42"').as_int()
        with pytest.raises(NuxeoDecodeError):
            Field("true").as_int()
        with pytest.raises(NuxeoDecodeError):
            Field("1").as_bool()

    def test_mismatch_leaves_raw_unchanged(self) -> None:
        """Test a failed accessor does not alter the stored bytes."""
        field = Field('{"a": 1}')
        with pytest.raises(NuxeoDecodeError):
            field.as_str()
        assert field.raw == b'{"a": 1}'

    def test_datetime_accessor(self) -> None:
        """Test timestamps are parsed from strings."""
        field = Field('"2024-01-15T10:30:00Z"')
        assert field.as_datetime() == datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
        with pytest.raises(NuxeoDecodeError):
            Field('"yesterday"').as_datetime()

    def test_list_accessors(self) -> None:
        """Test typed list accessors."""
        assert Field('["a", "b"]').as_str_list() == ["a", "b"]
        assert Field("[1, 2]").as_int_list() == [1, 2]
        assert Field("[1, 2.5]").as_float_list() == [1.0, 2.5]
        assert Field("[true, false]").as_bool_list() == [True, False]
        with pytest.raises(NuxeoDecodeError, match="not a string"):
            Field('["a", 1]').as_str_list()
        with pytest.raises(NuxeoDecodeError, match="not a list"):
            Field('"a"').as_str_list()

    def test_as_model(self) -> None:
        """Test decoding into a caller-supplied shape."""
        field = Field('{"upload-batch": "b1", "upload-fileId": 0}')
        info = field.as_model(UploadInfo)
        assert info is not None
        assert info.batch_id == "b1"
        assert info.file_idx == "0"

    def test_as_model_mismatch(self) -> None:
        """Test a shape mismatch raises."""
        with pytest.raises(NuxeoDecodeError):
            Field('"text"').as_model(UploadInfo)

    def test_invalid_json_rejected(self) -> None:
        """Test raw text must be JSON."""
        with pytest.raises(NuxeoDecodeError):
            Field("{not json")

    def test_of_encodes_python_values(self) -> None:
        """Test building fields from Python values."""
        assert Field.of(["art", "music"]).to_json() == '["art","music"]'
        assert Field.of(datetime(2024, 1, 15, 10, 30, tzinfo=UTC)).as_str() == (
            "2024-01-15T10:30:00Z"
        )
        upload = Field.of(UploadInfo(batch_id="b1", file_idx="0"))
        assert upload.value == {"upload-batch": "b1", "upload-fileId": "0"}

    def test_equality_by_value(self) -> None:
        """Test fields compare by decoded value."""
        assert Field('{"a":1}') == Field('{ "a" : 1 }')
        assert Field("1") != Field('"1"')

    def test_dump_json_is_compact_utf8(self) -> None:
        """Test the wire encoding keeps non-ASCII text."""
        assert dump_json({"title": "Café"}) == '{"title":"Café"}'.encode()


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class TestDocument:
    """Tests for the document entity."""

    def test_decode(self, document_json: dict[str, Any]) -> None:
        """Test decoding a full document payload."""
        doc = Document.model_validate(document_json)

        assert doc.uid == "5b2b1d3c-1f4a-4d8e-9a57-aa0f4b4b4c11"
        assert doc.parent_ref == "9c4e5f9a-3a0b-4c23-8f77-0fd7e1b9d2a1"
        assert doc.is_checked_out is True
        assert doc.change_token == "1-0"
        assert doc.last_modified == datetime(2024, 1, 15, 10, 30, 0, 123000, tzinfo=UTC)
        assert doc.schemas[0].prefix == "dc"

    def test_properties_are_fields(self, document_json: dict[str, Any]) -> None:
        """Test property values decode lazily by type."""
        doc = Document.model_validate(document_json)

        title = doc.get_property("dc:title")
        assert title is not None
        assert title.as_str() == "Meeting notes"
        subjects = doc.get_property("dc:subjects")
        assert subjects is not None
        assert subjects.as_str_list() == ["art", "music"]
        note = doc.get_property("note:note")
        assert note is not None
        assert note.is_null()
        assert doc.get_property("file:content") is None

    def test_facets(self, document_json: dict[str, Any]) -> None:
        """Test facet helpers."""
        doc = Document.model_validate(document_json)
        assert doc.has_facet("Versionable")
        assert not doc.is_folder()
        assert doc.is_collectable()
        folder = Document(facets=["Folderish", "NotCollectionMember"])
        assert folder.is_folder()
        assert not folder.is_collectable()

    def test_create_payload(self) -> None:
        """Test the creation body omits unset values."""
        doc = Document(name="note", type="Note")
        doc.set_property("dc:title", "Hello")

        assert doc.to_create_payload() == {
            "entity-type": "document",
            "name": "note",
            "type": "Note",
            "properties": {"dc:title": "Hello"},
        }

    def test_update_payload_carries_change_token(
        self,
        document_json: dict[str, Any],
    ) -> None:
        """Test the update body identifies the document and its version."""
        doc = Document.model_validate(document_json)
        doc.set_property("dc:title", "Renamed")

        payload = doc.to_update_payload()

        assert payload["uid"] == doc.uid
        assert payload["changeToken"] == "1-0"
        assert payload["properties"]["dc:title"] == "Renamed"
        assert payload["properties"]["note:note"] is None

    def test_pagination_fields(self, documents_json: dict[str, Any]) -> None:
        """Test a document page keeps its pagination state."""
        page = Documents.model_validate(documents_json)

        assert page.is_paginable is True
        assert page.results_count == 1
        assert page.current_page_index == 1
        assert page.current_page_size == len(page.entries)
        assert page.is_previous_page_available is True
        assert page.is_next_page_available is False
        assert isinstance(page.entries[0], Document)


# ---------------------------------------------------------------------------
# Entity decoding
# ---------------------------------------------------------------------------


class TestDecodeEntity:
    """Tests for entity-type based decoding."""

    def test_decodes_known_types(self, document_json: dict[str, Any]) -> None:
        """Test the discriminator picks the model."""
        assert isinstance(decode_entity(document_json), Document)
        assert isinstance(
            decode_entity({"entity-type": "user", "id": "jdoe"}),
            User,
        )
        assert isinstance(
            decode_entity({"entity-type": "login", "username": "jdoe"}),
            Login,
        )
        assert isinstance(decode_entity({"entity-type": "acls", "acl": []}), ACP)

    def test_unknown_type(self) -> None:
        """Test an unknown discriminator raises."""
        with pytest.raises(NuxeoDecodeError, match="unknown entity-type"):
            decode_entity({"entity-type": "spaceship"})

    def test_not_an_object(self) -> None:
        """Test non-object payloads raise."""
        with pytest.raises(NuxeoDecodeError, match="expected a JSON object"):
            decode_entity([1, 2])

    def test_shape_mismatch(self) -> None:
        """Test a payload missing required fields raises."""
        with pytest.raises(NuxeoDecodeError, match="does not match"):
            decode_entity({"entity-type": "login"})


# ---------------------------------------------------------------------------
# Users, tasks, capabilities
# ---------------------------------------------------------------------------


class TestUserAndGroup:
    """Tests for user and group entities."""

    def test_user_property_accessors(self) -> None:
        """Test profile accessors fall back to empty strings."""
        user = User.model_validate(
            {
                "entity-type": "user",
                "id": "jdoe",
                "properties": {
                    "username": "jdoe",
                    "firstName": "John",
                    "email": None,
                    "company": 42,
                    "groups": ["members"],
                },
                "isAdministrator": False,
            }
        )

        assert user.username == "jdoe"
        assert user.first_name == "John"
        assert user.last_name == ""
        assert user.email == ""
        assert user.company == ""
        assert user.groups == ["members"]

    def test_new_user_payload(self) -> None:
        """Test building a user to create."""
        user = User.new("jdoe", firstName="John", groups=["members"])

        assert user.to_payload() == {
            "entity-type": "user",
            "id": "jdoe",
            "properties": {
                "username": "jdoe",
                "firstName": "John",
                "groups": ["members"],
            },
        }

    def test_group_name_falls_back_to_id(self) -> None:
        """Test the group name accessor."""
        assert Group(id="admins").name == "admins"
        assert Group(id="g1", groupname="writers").name == "writers"


class TestTask:
    """Tests for the task entity."""

    def test_decode_task(self) -> None:
        """Test decoding a task with variables and actions."""
        task = Task.model_validate(
            {
                "entity-type": "task",
                "id": "t1",
                "name": "wf.serialDocumentReview.DocumentValidation",
                "workflowInstanceId": "w1",
                "state": "opened",
                "directive": "wf.serialDocumentReview.AcceptReject",
                "created": "2024-01-15T10:30:00Z",
                "dueDate": "2024-01-18T10:30:00Z",
                "targetDocumentIds": [{"id": "d1"}],
                "actors": [{"id": "user:Administrator"}],
                "variables": {"comment": "", "validated": True},
                "taskInfo": {
                    "allowTaskReassignment": True,
                    "taskActions": [
                        {"name": "reject", "url": "http://x", "label": "Reject"},
                    ],
                },
            }
        )

        assert task.workflow_instance_id == "w1"
        assert task.due_date == datetime(2024, 1, 18, 10, 30, tzinfo=UTC)
        assert task.variables["validated"].as_bool() is True
        assert task.task_info is not None
        assert task.task_info.task_actions[0].name == "reject"


class TestCapabilities:
    """Tests for capabilities and server versions."""

    def test_decode_capabilities(self) -> None:
        """Test the distribution version is exposed."""
        caps = Capabilities.model_validate(
            {
                "entity-type": "capabilities",
                "server": {"distributionVersion": "10.10", "distributionName": "lts"},
                "cluster": {"enabled": False},
                "repository": {"default": {"queryBlobKeys": True}},
            }
        )

        assert caps.server.distribution_version == "10.10"
        assert caps.repository["default"].query_blob_keys is True

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("10.10", ServerVersion(10, 10, 0)),
            ("2021.39.3", ServerVersion(2021, 39, 3)),
            ("11.1-SNAPSHOT", ServerVersion(11, 1, 0)),
            ("", ServerVersion(0, 0, 0)),
        ],
    )
    def test_parse_version(self, text: str, expected: ServerVersion) -> None:
        """Test lenient version parsing."""
        assert ServerVersion.parse(text) == expected

    def test_version_ordering(self) -> None:
        """Test versions compare numerically."""
        assert ServerVersion.parse("10.10") > ServerVersion.parse("10.2")
        assert str(ServerVersion.parse("2023.1")) == "2023.1.0"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class TestDataModel:
    """Tests for schema and doc type decoding."""

    def test_schema_prefix_lifted(self) -> None:
        """Test the @prefix pseudo-field becomes the schema prefix."""
        schema = Schema.model_validate(
            {
                "entity-type": "schema",
                "name": "dublincore",
                "@prefix": "dc",
                "fields": {
                    "title": "string",
                    "subjects": "string[]",
                    "contributors": {"type": "string[]"},
                },
            }
        )

        assert schema.prefix == "dc"
        assert schema.fields["title"].is_string()
        assert schema.fields["subjects"].type == "string"
        assert schema.fields["subjects"].is_array is True
        assert schema.fields["contributors"].is_array is True

    def test_complex_field(self) -> None:
        """Test nested complex fields."""
        schema = Schema.model_validate(
            {
                "name": "file",
                "prefix": "file",
                "fields": {
                    "content": {
                        "type": "complex",
                        "fields": {"name": "string", "length": "long"},
                    },
                },
            }
        )

        content = schema.fields["content"]
        assert content.is_complex()
        assert content.fields["length"].is_long()

    def test_doc_types_resolve_schemas(self) -> None:
        """Test schema names of the all-types listing are resolved."""
        types = DocTypes.model_validate(
            {
                "docTypes": {
                    "Note": {
                        "parent": "Document",
                        "facets": ["Versionable"],
                        "schemas": ["dublincore", "note"],
                    },
                },
                "schemas": {
                    "dublincore": {"@prefix": "dc", "title": "string"},
                    "note": {"note": "string"},
                },
            }
        )

        note = types.doc_types["Note"]
        assert note.parent == "Document"
        assert [schema.name for schema in note.schemas] == ["dublincore", "note"]
        dublincore = types.get_schema("dublincore")
        assert dublincore is not None
        assert dublincore.prefix == "dc"
        assert "@prefix" not in dublincore.fields


# ---------------------------------------------------------------------------
# Batch uploads
# ---------------------------------------------------------------------------


class TestBatchUpload:
    """Tests for batch upload descriptors."""

    def test_string_numbers_normalised(self) -> None:
        """Test the server's string-encoded numbers decode."""
        record = BatchUpload.model_validate(
            {
                "name": "big.iso",
                "batchId": "b1",
                "fileIdx": "0",
                "uploadType": "chunked",
                "uploadedSize": "30",
                "uploadedChunkIds": ["2", "0", "1", "1"],
                "chunkCount": "3",
            }
        )

        assert record.file_idx == "0"
        assert record.upload_type == UploadType.CHUNKED
        assert record.uploaded_size == 30
        assert record.uploaded_chunk_ids == [0, 1, 2]
        assert record.is_complete

    def test_incomplete_chunked(self) -> None:
        """Test a partial chunked upload is not complete."""
        record = BatchUpload(
            upload_type=UploadType.CHUNKED,
            uploaded_chunk_ids=[0],
            chunk_count=3,
        )
        assert not record.is_complete
