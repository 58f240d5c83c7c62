"""Typed entities of the Nuxeo REST API.

:func:`decode_entity` reads the ``entity-type`` discriminator of a JSON
payload and builds the matching model.
"""

from __future__ import annotations

from typing import Any

import pydantic
from pydantic import ValidationError

from nuxeo_sdk.exceptions import NuxeoDecodeError
from nuxeo_sdk.models.acp import ACE, ACL, ACP, ACLName
from nuxeo_sdk.models.audit import Audit, LogEntry
from nuxeo_sdk.models.base import Entities, Entity, NuxeoBaseModel, PaginableEntities
from nuxeo_sdk.models.batch import BatchInfo, BatchUpload, UploadType
from nuxeo_sdk.models.blob import DEFAULT_MIME_TYPE, Blob, ByteSource
from nuxeo_sdk.models.capabilities import (
    Capabilities,
    ClusterCapabilities,
    RepositoryCapabilities,
    ServerCapabilities,
    ServerVersion,
)
from nuxeo_sdk.models.datamodel import DocType, DocTypes, Facet, Schema, SchemaField
from nuxeo_sdk.models.directory import (
    Directories,
    Directory,
    DirectoryEntries,
    DirectoryEntry,
)
from nuxeo_sdk.models.document import (
    BlobProperty,
    Document,
    DocumentSchema,
    Documents,
    UploadInfo,
)
from nuxeo_sdk.models.field import Field
from nuxeo_sdk.models.timestamp import ISO8601Time, format_iso8601, parse_iso8601
from nuxeo_sdk.models.user import (
    ExtendedGroup,
    Group,
    Groups,
    User,
    UserProperty,
    Users,
)
from nuxeo_sdk.models.workflow import (
    Task,
    TaskAction,
    TaskComment,
    TaskCompletion,
    TaskInfo,
    Tasks,
    Workflow,
    WorkflowGraph,
    Workflows,
)


__all__ = [
    "ACE",
    "ACL",
    "ACP",
    "DEFAULT_MIME_TYPE",
    "ENTITY_TYPES",
    "ACLName",
    "Audit",
    "BatchInfo",
    "BatchUpload",
    "Blob",
    "BlobProperty",
    "Blobs",
    "ByteSource",
    "Capabilities",
    "ClusterCapabilities",
    "Directories",
    "Directory",
    "DirectoryEntries",
    "DirectoryEntry",
    "DocType",
    "DocTypes",
    "Document",
    "DocumentSchema",
    "Documents",
    "Entities",
    "Entity",
    "ExtendedGroup",
    "Facet",
    "Field",
    "Group",
    "Groups",
    "ISO8601Time",
    "LogEntry",
    "Login",
    "NuxeoBaseModel",
    "PaginableEntities",
    "RepositoryCapabilities",
    "Schema",
    "SchemaField",
    "ServerCapabilities",
    "ServerVersion",
    "Task",
    "TaskAction",
    "TaskComment",
    "TaskCompletion",
    "TaskInfo",
    "Tasks",
    "UploadInfo",
    "UploadType",
    "User",
    "UserProperty",
    "Users",
    "Workflow",
    "WorkflowGraph",
    "Workflows",
    "decode_entity",
    "format_iso8601",
    "parse_iso8601",
]


class Login(Entity):
    """Answer of the ``login`` automation operation."""

    entity_type: str = pydantic.Field(default="login", alias="entity-type")
    username: str
    is_administrator: bool = False
    groups: list[str] = []


Blobs = Entities[BlobProperty]


ENTITY_TYPES: dict[str, type[NuxeoBaseModel]] = {
    "acls": ACP,
    "blobs": Blobs,
    "capabilities": Capabilities,
    "directories": Directories,
    "directory": Directory,
    "directoryEntries": DirectoryEntries,
    "directoryEntry": DirectoryEntry,
    "docType": DocType,
    "docTypes": DocTypes,
    "document": Document,
    "documents": Documents,
    "facet": Facet,
    "graph": WorkflowGraph,
    "group": Group,
    "groups": Groups,
    "logEntries": Audit,
    "logEntry": LogEntry,
    "login": Login,
    "schema": Schema,
    "task": Task,
    "tasks": Tasks,
    "user": User,
    "users": Users,
    "workflow": Workflow,
    "workflows": Workflows,
}
"""Models keyed by the ``entity-type`` discriminator they decode."""


def decode_entity(data: Any) -> NuxeoBaseModel:  # noqa: ANN401
    """Decode a JSON payload into the model named by its ``entity-type``.

    Args:
        data: A decoded JSON object.

    Returns:
        The typed entity.

    Raises:
        NuxeoDecodeError: If the payload is not an object, names an unknown
            entity type, or does not match the model.
    """
    if not isinstance(data, dict):
        msg = f"expected a JSON object, got {type(data).__name__}"
        raise NuxeoDecodeError(msg)
    entity_type = data.get("entity-type")
    model = ENTITY_TYPES.get(entity_type) if isinstance(entity_type, str) else None
    if model is None:
        msg = f"unknown entity-type: {entity_type!r}"
        raise NuxeoDecodeError(msg)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        msg = f"payload does not match {entity_type!r}: {exc}"
        raise NuxeoDecodeError(msg) from exc
